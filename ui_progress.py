# ui_progress.py
import streamlit as st

from charts_altair import day_grid_frame, day_grid_heatmap
from charts_plotly import attendance_bars, weekly_metric_lines
from constants import METRICS, WEEK_STARTS_ON
from joins import index_by_learner_and_date
from metrics_period import weekly_table
from utils_time import fmt_long_day


def render_attendance_grid(attendance, days, labels, attendance_table=None):
    st.subheader("📅 Attendance grid")
    idx = index_by_learner_and_date(attendance, "attendance_date")
    if not idx:
        st.write("No attendance has been recorded for this session yet.")
        return
    st.altair_chart(day_grid_heatmap(day_grid_frame(idx, days, labels)), use_container_width=True)
    if attendance_table is not None and not attendance_table.empty:
        st.plotly_chart(attendance_bars(attendance_table), use_container_width=True)


def render_weekly_progress(progress, labels, week_starts_on: int = WEEK_STARTS_ON):
    st.subheader("📈 Weekly progress")
    idx = index_by_learner_and_date(progress, "progress_date")
    weeks = weekly_table({lid: list(d.values()) for lid, d in idx.items()}, labels, week_starts_on)
    if weeks.empty:
        st.write("No progress scores have been recorded for this session yet.")
        return

    tabs = st.tabs([label for _, _, label in METRICS])
    for tab_obj, (_, name, label) in zip(tabs, METRICS):
        with tab_obj:
            st.plotly_chart(weekly_metric_lines(weeks, name), use_container_width=True)

    shown = weeks.drop(columns=["learner_id"]).copy()
    shown["week_start"] = shown["week_start"].map(fmt_long_day)
    st.dataframe(shown, use_container_width=True, hide_index=True)
