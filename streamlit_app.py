# streamlit_app.py
import logging

import streamlit as st

from calendar_export import (
    calendar_file_name,
    event_from_session,
    to_calendar_file,
    to_google_url,
    to_outlook_url,
)
from charts_plotly import bar_sessions_by_client
from constants import (
    ATTENDANCE_SHEET,
    CALENDAR_MIME_TYPE,
    PRIMARY_JSON_PATH,
    SECONDARY_JSON_PATH,
    WEEK_STARTS_ON,
    XLSX_MIME_TYPE,
)
from errors import TrackerError
from joins import build_indexes, session_bundle, session_labels
from loaders import load_json, merge_data
from metrics_aggregate import aggregate_session, trainer_overview
from report_builder import (
    build_attendance_workbook,
    build_progress_workbook,
    build_roster_workbook,
    export_file_name,
    serialize,
)
from ui_import import render_import_panel
from ui_progress import render_attendance_grid, render_weekly_progress
from ui_session import display_session_summary
from utils_time import date_range_label, session_days

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Training Session Tracker", layout="wide")

WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _load_defaults():
    datasets, labels = [], []
    for path in (PRIMARY_JSON_PATH, SECONDARY_JSON_PATH):
        if not path:
            continue
        try:
            ds = load_json(path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load %s: %s", path, e)
            continue
        if any(ds.values()):
            datasets.append(ds)
            labels.append(path)
    return datasets, labels


def _session_option(session) -> str:
    labels = session_labels(session)
    return f"{labels['topic']} • {labels['client']} • {date_range_label(session)} (#{session.get('id')})"


def render_downloads(session, enrollments, attendance, progress, week_starts_on):
    st.subheader("⬇️ Exports")
    labels = session_labels(session)
    sid = session.get("id")

    exports = [
        ("Roster", build_roster_workbook(session, enrollments, labels)),
        ("Attendance", build_attendance_workbook(session, enrollments, attendance, labels=labels)),
    ]
    if session.get("progress_tracking_enabled"):
        exports.append(("Progress", build_progress_workbook(session, enrollments, progress, labels=labels, week_starts_on=week_starts_on)))

    cols = st.columns(len(exports))
    for col, (kind, workbook) in zip(cols, exports):
        with col:
            st.download_button(
                f"{kind} (.xlsx)",
                serialize(workbook),
                file_name=export_file_name(kind, labels["topic"]),
                mime=XLSX_MIME_TYPE,
                key=f"export_{kind}_{sid}",
            )

    event = event_from_session(session, labels)
    c1, c2, c3 = st.columns(3)
    with c1:
        st.download_button(
            "Calendar file (.ics)",
            to_calendar_file(event),
            file_name=calendar_file_name(event.title),
            mime=CALENDAR_MIME_TYPE,
            key=f"export_ics_{sid}",
        )
    with c2:
        st.link_button("Add to Google Calendar", to_google_url(event))
    with c3:
        st.link_button("Add to Outlook", to_outlook_url(event))

    return exports


def main():
    st.title("Training Session Tracker")

    # -------- Data sources --------
    uploaded = st.sidebar.file_uploader("Upload one or more JSON snapshots", type=["json"], accept_multiple_files=True)
    if uploaded:
        try:
            datasets = [load_json(u) for u in uploaded]
        except ValueError as e:
            st.error(f"Could not read snapshot: {e}")
            return
        data = merge_data(*datasets)
        data_label = " + ".join([u.name for u in uploaded])
    else:
        datasets, labels = _load_defaults()
        if not datasets:
            st.error("No data loaded. Upload JSON snapshots or set valid defaults.")
            return
        data = merge_data(*datasets)
        data_label = " + ".join(labels)
    st.sidebar.success(f"Loaded: {data_label}")

    week_starts_on = st.sidebar.selectbox(
        "Weeks start on", options=list(range(7)), index=WEEK_STARTS_ON, format_func=lambda i: WEEKDAYS[i],
    )

    idx = build_indexes(data)
    sessions = sorted(idx["sessions_by_id"].values(), key=lambda s: str(s.get("session_date") or ""))
    if not sessions:
        st.warning("The snapshot has no training sessions.")
        return

    # -------- Trainer overview --------
    trainers = sorted({str(s["trainer_id"]) for s in sessions if s.get("trainer_id") is not None})
    trainer = st.sidebar.selectbox("Trainer", options=["All"] + trainers)
    trainer_id = None if trainer == "All" else trainer
    overview = trainer_overview(data, trainer_id)
    c1, c2 = st.columns(2)
    c1.metric("Scheduled sessions", overview["total_sessions"])
    c2.metric("Enrollments", overview["total_enrollments"])
    if overview["sessions_by_client"]:
        st.plotly_chart(bar_sessions_by_client(overview["sessions_by_client"]), use_container_width=True)

    # -------- Session selection --------
    if trainer_id is not None:
        sessions = [s for s in sessions if str(s.get("trainer_id")) == trainer_id]
    if not sessions:
        st.info("This trainer has no sessions in the snapshot.")
        return
    by_option = {_session_option(s): s for s in sessions}
    choice = st.selectbox("Session", options=list(by_option.keys()))
    session_id = by_option[choice]["id"]

    try:
        session, enrollments, attendance, progress = session_bundle(data, session_id, idx)
        summary = aggregate_session(data, session_id)
        days = session_days(session)
    except TrackerError as e:
        st.error(f"Session data is invalid: {e}")
        return
    except ValueError as e:
        st.error(str(e))
        return

    display_session_summary(summary)

    try:
        exports = render_downloads(session, enrollments, attendance, progress, week_starts_on)
    except TrackerError as e:
        logger.error("Export failed for session %s: %s", session_id, e)
        st.error(f"Export failed: {e}")
        exports = []

    attendance_table = None
    for kind, workbook in exports:
        if kind == "Attendance":
            attendance_table = workbook.sheet(ATTENDANCE_SHEET).table
    render_attendance_grid(attendance, days, summary["labels"], attendance_table)

    if session.get("progress_tracking_enabled"):
        render_weekly_progress(progress, summary["labels"], week_starts_on)

    render_import_panel(session_id)


if __name__ == "__main__":
    main()
