"""
Per-day and per-week metrics for a training session.

Exports:
- weekly_averages(learner_id, progress_records, week_starts_on)
- weekly_table(progress_by_learner, labels, week_starts_on)
- attendance_row(dates, days)
- attendance_tally(statuses)
- attendance_rate(tally)
- round_half_up(total, count)
"""

from __future__ import annotations
from collections import Counter
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from constants import ATTENDANCE_STATUSES, METRICS, WEEK_STARTS_ON
from records import WeeklyAverage
from utils_time import parse_date, week_start


# -----------------------------
# Helpers
# -----------------------------
def score_value(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return None if np.isnan(v) else v


def round_half_up(total: float, count: int) -> Optional[int]:
    """Integer mean with .5 rounded away from zero; None when nothing contributed."""
    if not count:
        return None
    q = Decimal(str(total)) / Decimal(int(count))
    return int(q.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# -----------------------------
# Public: weekly averages
# -----------------------------
def weekly_averages(
    learner_id: Any, progress_records: List[Dict[str, Any]], week_starts_on: int = WEEK_STARTS_ON
) -> List[WeeklyAverage]:
    """
    Group a learner's daily scores into weeks and average each metric on its own.

    A metric with no value on any day of the week comes back as None, never 0.
    Only weeks holding at least one record are returned, oldest first.
    """
    rows = []
    for r in progress_records:
        d = parse_date(r.get("progress_date"))
        if d is None:
            continue
        row = {"week_start": week_start(d, week_starts_on)}
        for key, name, _ in METRICS:
            row[name] = score_value(r.get(key))
        rows.append(row)

    if not rows:
        return []

    df = pd.DataFrame(rows)
    aggs = {"record_count": ("week_start", "size")}
    for _, name, _ in METRICS:
        df[name] = pd.to_numeric(df[name], errors="coerce")
        aggs[f"{name}_sum"] = (name, "sum")
        aggs[f"{name}_n"] = (name, "count")

    grp = df.groupby("week_start").agg(**aggs).reset_index().sort_values("week_start")

    out: List[WeeklyAverage] = []
    for rec in grp.to_dict(orient="records"):
        averages = {
            name: round_half_up(rec[f"{name}_sum"], int(rec[f"{name}_n"]))
            for _, name, _ in METRICS
        }
        out.append(WeeklyAverage(
            learner_id=str(learner_id),
            week_start=rec["week_start"],
            record_count=int(rec["record_count"]),
            **averages,
        ))
    return out


def weekly_table(
    progress_by_learner: Dict[str, List[Dict[str, Any]]],
    labels: Optional[Dict[str, str]] = None,
    week_starts_on: int = WEEK_STARTS_ON,
) -> pd.DataFrame:
    """One row per (learner, week) with week numbers restarting at 1 for every learner."""
    labels = labels or {}
    rows = []
    for learner_id, records in progress_by_learner.items():
        for n, wk in enumerate(weekly_averages(learner_id, records, week_starts_on), start=1):
            rows.append({
                "learner_id": learner_id,
                "learner": labels.get(learner_id, learner_id),
                "week": n,
                "week_start": wk.week_start,
                **{name: wk.metric(name) for _, name, _ in METRICS},
            })
    columns = ["learner_id", "learner", "week", "week_start"] + [name for _, name, _ in METRICS]
    return pd.DataFrame(rows, columns=columns)


# -----------------------------
# Public: attendance
# -----------------------------
def attendance_row(dates: Dict[str, Dict[str, Any]], days: List[date]) -> List[Optional[str]]:
    """Status per grid day for one learner, None where nothing was recorded."""
    out = []
    for d in days:
        rec = dates.get(d.isoformat())
        status = rec.get("status") if rec else None
        out.append(str(status) if status not in (None, "") else None)
    return out


def attendance_tally(statuses: List[Optional[str]]) -> Dict[str, int]:
    counts = Counter(s for s in statuses if s)
    return {status: int(counts.get(status, 0)) for status in ATTENDANCE_STATUSES}


def attendance_rate(tally: Dict[str, int]) -> float:
    """Share of marked days the learner showed up (late counts as attended)."""
    marked = sum(tally.values())
    if not marked:
        return 0.0
    return round(100.0 * (tally.get("present", 0) + tally.get("late", 0)) / marked, 1)
