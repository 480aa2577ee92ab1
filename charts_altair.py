# charts_altair.py
from typing import Any, Dict, List

import pandas as pd
import altair as alt

from constants import NO_RECORD
from utils_time import fmt_short_day


def meter_chart(value: float, title: str, max_value: float = 100.0, unit: str = "", fmt: str = ".1f") -> alt.Chart:
    max_value = float(max(1.0, max_value, value))
    df = pd.DataFrame([{"name": title, "value": float(value)}])
    bar = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("value:Q", title=None, scale=alt.Scale(domain=[0, max_value])),
            y=alt.Y("name:N", title=None, axis=None),
            tooltip=[alt.Tooltip("value:Q", format=fmt)],
        )
        .properties(height=60, title=f"{title}: {value:{fmt}}{unit}")
    )
    text = bar.mark_text(align="left", dx=3, dy=0).encode(text=alt.Text("value:Q", format=fmt))
    return bar + text


def day_grid_frame(attendance_idx: Dict[str, Dict[str, Dict[str, Any]]], days: List[Any],
                   labels: Dict[str, str]) -> pd.DataFrame:
    """Long frame (learner, day, status) with one row per learner per grid day."""
    rows = []
    for learner_id, dates in attendance_idx.items():
        for d in days:
            rec = dates.get(d.isoformat())
            status = (rec or {}).get("status") or NO_RECORD
            rows.append({"learner": labels.get(learner_id, learner_id), "day": fmt_short_day(d), "status": status})
    return pd.DataFrame(rows, columns=["learner", "day", "status"])


def day_grid_heatmap(grid: pd.DataFrame) -> alt.Chart:
    """Learners down, session days across, cell colour by attendance status."""
    order = list(dict.fromkeys(grid["day"])) if not grid.empty else []
    base = alt.Chart(grid).encode(
        x=alt.X("day:N", title=None, sort=order),
        y=alt.Y("learner:N", title=None),
    )
    cells = base.mark_rect().encode(
        color=alt.Color(
            "status:N",
            scale=alt.Scale(
                domain=["present", "late", "absent", NO_RECORD],
                range=["#6AA84F", "#FF8C42", "#D9534F", "#E5ECF6"],
            ),
            legend=alt.Legend(title="Status"),
        ),
        tooltip=["learner:N", "day:N", "status:N"],
    )
    text = base.mark_text(fontSize=10).encode(text="status:N")
    return (cells + text).properties(height=max(80, 28 * grid["learner"].nunique()), title="Attendance by day")
