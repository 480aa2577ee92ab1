# ui_session.py
from html import escape

import streamlit as st

from charts_altair import meter_chart
from charts_plotly import pie_for_attendance


def _metric_chip(label: str, value: str, *, icon: str = "") -> str:
    icon_part = f"<span class='chip-icon'>{icon}</span>" if icon else ""
    return (
        f"<div class='metric-chip'>"
        f"{icon_part}"
        f"<div class='chip-body'>"
        f"<span class='chip-label'>{label}</span>"
        f"<span class='chip-value'>{value}</span>"
        f"</div></div>"
    )


def _detail_row(label: str, value: str) -> str:
    return (
        "<div class='detail-row'>"
        f"<span class='detail-label'>{label}</span>"
        f"<span class='detail-value'>{escape(str(value))}</span>"
        "</div>"
    )


SESSION_STYLE = """
<style>
    .session-card {
        background: linear-gradient(135deg, #111827 0%, #1f2937 45%, #0f172a 100%);
        border-radius: 18px;
        padding: 24px 28px;
        margin-bottom: 16px;
        color: #f8fafc;
        font-family: 'Inter', 'Segoe UI', sans-serif;
        border: 1px solid rgba(148, 163, 184, 0.12);
    }
    .session-heading {
        font-size: 1.5rem;
        font-weight: 700;
        display: flex;
        align-items: baseline;
        gap: 14px;
    }
    .session-heading span {
        font-size: 1rem;
        font-weight: 500;
        color: rgba(226, 232, 240, 0.85);
    }
    .session-meta {
        display: grid;
        grid-template-columns: repeat(auto-fill, minmax(200px, 1fr));
        gap: 12px 18px;
        margin-top: 12px;
    }
    .detail-row {
        display: flex;
        flex-direction: column;
        background: rgba(15, 23, 42, 0.68);
        padding: 12px 14px;
        border-radius: 14px;
        border: 1px solid rgba(148, 163, 184, 0.24);
    }
    .detail-label {
        font-size: 0.7rem;
        text-transform: uppercase;
        letter-spacing: 0.08em;
        color: rgba(148, 163, 184, 0.82);
        margin-bottom: 4px;
    }
    .detail-value {
        font-size: 1.05rem;
        font-weight: 600;
        color: #e2e8f0;
        word-break: break-word;
    }
    .metric-grid {
        display: flex;
        flex-wrap: wrap;
        gap: 16px;
        margin-top: 12px;
    }
    .metric-chip {
        display: flex;
        align-items: center;
        gap: 12px;
        background: linear-gradient(135deg, rgba(59, 130, 246, 0.16), rgba(17, 24, 39, 0.7));
        border-radius: 18px;
        padding: 14px 18px;
        border: 1px solid rgba(59, 130, 246, 0.25);
        min-width: 190px;
    }
    .chip-icon { font-size: 1.5rem; }
    .chip-body {
        display: flex;
        flex-direction: column;
        line-height: 1.1;
    }
    .chip-label {
        font-size: 0.73rem;
        text-transform: uppercase;
        letter-spacing: 0.12em;
        color: rgba(191, 219, 254, 0.9);
    }
    .chip-value {
        font-size: 1.2rem;
        font-weight: 700;
        color: #f8fafc;
    }
</style>
"""


def _score_display(value) -> str:
    return "—" if value is None else f"{value:.1f}"


def display_session_summary(summary):
    """Session card plus headline enrollment / attendance numbers."""
    st.markdown(SESSION_STYLE, unsafe_allow_html=True)

    with st.expander("Session overview", expanded=True):
        audience = f" • {escape(summary['audience'])}" if summary.get("audience") else ""
        tracking = "On" if summary.get("progress_tracking") else "Off"
        card = (
            "<div class='session-card'>"
            f"<div class='session-heading'>{escape(summary['topic'])}<span>{escape(summary['client'])}{audience}</span></div>"
            "<div class='session-meta'>"
            f"{_detail_row('Dates', summary['date_range'])}"
            f"{_detail_row('Days', summary['days'])}"
            f"{_detail_row('Status', summary['status'].title())}"
            f"{_detail_row('Progress tracking', tracking)}"
            "</div>"
            "</div>"
        )
        st.markdown(card, unsafe_allow_html=True)

        statuses = summary.get("enrollment_status", {})
        chips = [
            _metric_chip("Enrolled", str(summary["enrolled_total"]), icon="👥"),
            _metric_chip("With account", str(summary["with_account"]), icon="🔑"),
            _metric_chip("External", str(summary["external"]), icon="📇"),
            _metric_chip("No-shows", str(statuses.get("no_show", 0)), icon="🚫"),
            _metric_chip("Attendance rate", f"{summary['attendance_rate']:.1f}%", icon="🎯"),
        ]
        st.markdown("<div class='metric-grid'>" + "".join(chips) + "</div>", unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        st.plotly_chart(pie_for_attendance(summary["attendance"]), use_container_width=True)
    with c2:
        st.altair_chart(meter_chart(summary["attendance_rate"], "Attendance rate", unit="%"),
                        use_container_width=True)
        if summary.get("progress_tracking"):
            scores = summary.get("avg_scores", {})
            st.caption(
                f"Session averages: participation **{_score_display(scores.get('participation'))}** • "
                f"accuracy **{_score_display(scores.get('accuracy'))}** • "
                f"productivity **{_score_display(scores.get('productivity'))}**"
            )
