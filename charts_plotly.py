# charts_plotly.py
import pandas as pd
import plotly.graph_objects as go

from constants import METRICS

# Shared color palette
PALETTE = [
    "#2E86AB",  # blue
    "#6AA84F",  # green
    "#FF8C42",  # orange
    "#B35C9E",  # purple
    "#E5ECF6",  # light gray (for "Unmarked")
    "#D9534F",  # red
]

STATUS_COLORS = {"present": PALETTE[1], "late": PALETTE[2], "absent": PALETTE[5]}


def pie_for_attendance(totals: dict, title: str = "Attendance"):
    """Full pie of present / late / absent marks across the session."""
    labels = ["Present", "Late", "Absent"]
    values = [int(totals.get(k, 0)) for k in ("present", "late", "absent")]
    marked = sum(values)
    if not marked:
        labels, values = ["Unmarked"], [1]
        colors = [PALETTE[4]]
    else:
        colors = [STATUS_COLORS["present"], STATUS_COLORS["late"], STATUS_COLORS["absent"]]

    fig = go.Figure(
        data=[
            go.Pie(
                labels=labels,
                values=values,
                hole=0,
                sort=False,
                marker=dict(colors=colors),
                textinfo="label+percent" if marked else "label",
                hovertemplate="%{label}: %{value} of " + str(marked) + "<extra></extra>",
            )
        ]
    )
    fig.update_layout(
        template="plotly_white",
        height=280,
        margin=dict(l=10, r=10, t=40, b=10),
        title=f"{title} ({marked} marks)",
        showlegend=False,
    )
    return fig


def attendance_bars(table: pd.DataFrame):
    """
    Stacked bars per learner from an attendance export table.

    Expects the "Learner", "Present", "Absent" and "Late" columns produced by
    report_builder.build_attendance_workbook.
    """
    fig = go.Figure()
    for status in ("Present", "Late", "Absent"):
        fig.add_trace(
            go.Bar(
                name=status,
                x=table["Learner"].tolist() if not table.empty else [],
                y=table[status].tolist() if not table.empty else [],
                marker_color=STATUS_COLORS[status.lower()],
                hovertemplate="%{x}: %{y} " + status.lower() + "<extra></extra>",
            )
        )
    fig.update_layout(
        template="plotly_white",
        barmode="stack",
        height=360,
        margin=dict(l=10, r=10, t=40, b=40),
        title="Attendance by learner",
        xaxis=dict(title="Learner"),
        yaxis=dict(title="Days", rangemode="tozero", dtick=1),
    )
    return fig


def weekly_metric_lines(weeks: pd.DataFrame, metric: str = "participation"):
    """
    One line per learner of a weekly average metric.
    weeks: frame from metrics_period.weekly_table
    """
    label = next((lbl for _, name, lbl in METRICS if name == metric), metric.title())
    fig = go.Figure()
    for i, (learner, grp) in enumerate(weeks.groupby("learner", sort=False)):
        grp = grp.sort_values("week")
        fig.add_trace(
            go.Scatter(
                name=str(learner),
                x=[f"Week {n}" for n in grp["week"]],
                y=grp[metric].tolist(),
                mode="lines+markers",
                connectgaps=False,
                line=dict(color=PALETTE[i % 4]),
                hovertemplate="%{x}: %{y}<extra>" + str(learner) + "</extra>",
            )
        )
    fig.update_layout(
        template="plotly_white",
        height=360,
        margin=dict(l=10, r=10, t=40, b=40),
        title=f"Weekly average {label.lower()}",
        yaxis=dict(title=f"Avg {label}", range=[0, 100]),
    )
    return fig


def bar_sessions_by_client(data):
    """
    Bar chart of scheduled sessions per client.

    Accepts either:
      - dict {client_label: count}
      - list of {"name": ..., "value": ...} (metrics_aggregate.trainer_overview)
    """
    if isinstance(data, list):
        clients = [d.get("name", "Unknown") for d in data]
        values = [int(d.get("value") or 0) for d in data]
    else:
        clients = list(data.keys())
        values = [int(data[c]) for c in clients]

    fig = go.Figure(
        data=[
            go.Bar(
                x=clients,
                y=values,
                marker_color=PALETTE[0],
                text=[str(v) for v in values],
                textposition="outside",
                cliponaxis=False,
                hovertemplate="%{x}: %{y} sessions<extra></extra>",
            )
        ]
    )
    fig.update_layout(
        template="plotly_white",
        height=360,
        margin=dict(l=10, r=10, t=40, b=40),
        title="Sessions by client",
        xaxis=dict(title="Client"),
        yaxis=dict(title="Sessions", rangemode="tozero"),
        uniformtext_minsize=10,
        uniformtext_mode="show",
    )
    return fig
