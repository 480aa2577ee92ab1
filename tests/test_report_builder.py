from datetime import datetime
from io import BytesIO

import openpyxl
import pytest

from constants import ATTENDANCE_SHEET, DAILY_SCORES_SHEET, ROSTER_SHEET, WEEKLY_AVERAGES_SHEET
from errors import SerializationError
from report_builder import (
    build_attendance_workbook,
    build_import_template,
    build_progress_workbook,
    build_roster_workbook,
    export_file_name,
    serialize,
)


def _load(workbook):
    return openpyxl.load_workbook(BytesIO(serialize(workbook)))


def _row(ws, r):
    return [c.value for c in ws[r]]


# ---------- Roster ----------
def test_roster_header_and_rows(session, enrollments):
    ws = _load(build_roster_workbook(session, enrollments))[ROSTER_SHEET]
    assert ws["A1"].value == "Class Roster: HRP Navigation"
    assert ws["A2"].value == "Client: IBX"
    assert ws["A3"].value == "Date: Jan 1, 2024 - Jan 3, 2024"
    assert ws["A4"].value == "Total Enrolled: 3"
    assert _row(ws, 6) == ["#", "Name", "Email", "Unique ID", "Status", "Enrolled At"]
    assert _row(ws, 7) == [1, "Ada Lovelace", "ada@example.com", "E1", "enrolled", "Dec 20, 2023 3:04 PM"]


def test_roster_missing_fields_render_placeholder(session, enrollments):
    ws = _load(build_roster_workbook(session, enrollments))[ROSTER_SHEET]
    assert ws["B8"].value == "N/A"
    assert _row(ws, 9) == [3, "Walk In", "N/A", "X9", "no_show", "N/A"]


def test_roster_column_widths(session, enrollments):
    ws = _load(build_roster_workbook(session, enrollments))[ROSTER_SHEET]
    assert ws.column_dimensions["B"].width == 25
    assert ws.column_dimensions["C"].width == 30


# ---------- Attendance ----------
def test_attendance_grid_with_placeholders(session, enrollments, attendance):
    wb = build_attendance_workbook(session, enrollments, attendance)
    ws = _load(wb)[ATTENDANCE_SHEET]
    assert ws["A1"].value == "Attendance Report: HRP Navigation"
    assert _row(ws, 5) == ["Learner", "Jan 1", "Jan 2", "Jan 3", "Present", "Absent", "Late"]
    assert _row(ws, 6) == ["Ada Lovelace", "present", "late", "absent", 1, 1, 1]
    assert _row(ws, 7) == ["bob@example.com", "present", "-", "-", 1, 0, 0]


def test_attendance_ignores_records_outside_grid(session, enrollments, attendance):
    extra = attendance + [
        {"session_id": 7, "learner_id": "u2", "attendance_date": "2024-01-09", "status": "absent"},
    ]
    table = build_attendance_workbook(session, enrollments, extra).sheet(ATTENDANCE_SHEET).table
    bob = table[table["Learner"] == "bob@example.com"].iloc[0]
    assert (bob["Present"], bob["Absent"], bob["Late"]) == (1, 0, 0)


def test_attendance_explicit_day_grid(session, enrollments, attendance):
    table = build_attendance_workbook(session, enrollments, attendance, day_grid=["2024-01-02"]).sheet(
        ATTENDANCE_SHEET).table
    assert list(table.columns) == ["Learner", "Jan 2", "Present", "Absent", "Late"]


# ---------- Progress ----------
def test_progress_daily_scores(session, enrollments, progress):
    ws = _load(build_progress_workbook(session, enrollments, progress))[DAILY_SCORES_SHEET]
    assert ws["A1"].value == "Progress Report: HRP Navigation"
    assert ws["A2"].value == "Client: IBX"
    assert _row(ws, 4) == ["Learner", "Date", "Participation", "Accuracy", "Productivity", "Notes"]
    assert _row(ws, 5) == ["Ada Lovelace", "Jan 1, 2024", 80, "-", 60, "Quiet start"]
    assert _row(ws, 6)[:5] == ["Ada Lovelace", "Jan 2, 2024", 90, 70, "-"]


def test_progress_weekly_averages(session, enrollments, progress):
    wb = _load(build_progress_workbook(session, enrollments, progress))
    assert wb.sheetnames == [DAILY_SCORES_SHEET, WEEKLY_AVERAGES_SHEET]
    ws = wb[WEEKLY_AVERAGES_SHEET]
    assert ws["A1"].value == "Weekly Averages: HRP Navigation"
    assert _row(ws, 4) == ["Learner", "Week", "Week Starting", "Avg Participation", "Avg Accuracy",
                           "Avg Productivity"]
    assert _row(ws, 5) == ["Ada Lovelace", "Week 1", "Dec 31, 2023", 85, 70, 60]
    assert _row(ws, 6) == ["bob@example.com", "Week 1", "Dec 31, 2023", 50, 55, 65]


def test_progress_weekly_missing_metric_placeholder(session, enrollments):
    progress = [{"learner_id": "u1", "progress_date": "2024-01-01", "participation_score": 40}]
    table = build_progress_workbook(session, enrollments, progress).sheet(WEEKLY_AVERAGES_SHEET).table
    assert table.iloc[0]["Avg Participation"] == 40
    assert table.iloc[0]["Avg Accuracy"] == "-"


def test_progress_duplicate_day_keeps_latest(session, enrollments):
    progress = [
        {"learner_id": "u1", "progress_date": "2024-01-01", "participation_score": 10},
        {"learner_id": "u1", "progress_date": "2024-01-01", "participation_score": 90},
    ]
    wb = build_progress_workbook(session, enrollments, progress)
    daily = wb.sheet(DAILY_SCORES_SHEET).table
    assert len(daily) == 1
    assert daily.iloc[0]["Participation"] == 90
    assert wb.sheet(WEEKLY_AVERAGES_SHEET).table.iloc[0]["Avg Participation"] == 90


def test_progress_explicit_day_grid(session, enrollments, progress):
    labels = {"topic": "Custom Topic", "client": "Custom Client"}
    wb = build_progress_workbook(session, enrollments, progress, day_grid=["2024-01-01"], labels=labels)
    daily = wb.sheet(DAILY_SCORES_SHEET).table
    assert list(daily["Learner"]) == ["Ada Lovelace"]
    assert list(daily["Date"]) == ["Jan 1, 2024"]
    weekly = wb.sheet(WEEKLY_AVERAGES_SHEET).table
    assert list(weekly["Learner"]) == ["Ada Lovelace"]
    assert weekly.iloc[0]["Avg Participation"] == 80
    assert _load(wb)[DAILY_SCORES_SHEET]["A1"].value == "Progress Report: Custom Topic"


# ---------- Empty inputs ----------
@pytest.mark.parametrize("build", [
    lambda s: build_roster_workbook(s, []),
    lambda s: build_attendance_workbook(s, [], []),
    lambda s: build_progress_workbook(s, [], []),
])
def test_empty_inputs_still_produce_workbooks(session, build):
    workbook = build(session)
    wb = _load(workbook)
    assert wb.sheetnames == workbook.sheet_names
    for sheet in workbook.sheets:
        ws = wb[sheet.name]
        assert ws["A1"].value
        assert ws.max_row == sheet.table_start_row + 1
        assert _row(ws, sheet.table_start_row + 1)[0] == sheet.table.columns[0]


# ---------- Output ----------
def test_serialize_writes_sink(session, enrollments):
    sink = BytesIO()
    payload = serialize(build_roster_workbook(session, enrollments), sink=sink)
    assert payload[:2] == b"PK"
    assert sink.getvalue() == payload


def test_serialize_wraps_unwritable_values(session):
    learners = [{"learner_name": "bad\x01name"}]
    with pytest.raises(SerializationError):
        serialize(build_roster_workbook(session, learners))


def test_import_template_layout():
    ws = _load(build_import_template())["Learners"]
    assert _row(ws, 1) == ["Name", "Email", "Unique ID"]
    assert _row(ws, 2) == ["John Doe", "john.doe@example.com", "EMP001"]


def test_export_file_name():
    stamp = datetime(2024, 3, 1, 12, 0)
    assert export_file_name("Roster", "HRP Navigation", stamp) == "Roster_HRP_Navigation_20240301.xlsx"
    assert export_file_name("Progress", "DLP-Role  Specific", stamp) == "Progress_DLP-Role_Specific_20240301.xlsx"
