# report_builder.py
import logging
import re
from datetime import date, datetime
from io import BytesIO
from typing import Any, BinaryIO, Dict, List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from constants import (
    ATTENDANCE_SHEET,
    DAILY_SCORES_SHEET,
    IMPORT_TEMPLATE_COLUMN_WIDTHS,
    IMPORT_TEMPLATE_SHEET,
    METRICS,
    NO_RECORD,
    NOT_AVAILABLE,
    ROSTER_COLUMN_WIDTHS,
    ROSTER_SHEET,
    WEEK_STARTS_ON,
    WEEKLY_AVERAGES_SHEET,
)
from errors import SerializationError
from joins import index_by_learner_and_date, learner_labels, session_labels
from metrics_period import attendance_row, attendance_tally, score_value, weekly_table
from records import ExportWorkbook, SheetTable
from utils_time import date_range_label, fmt_long_day, fmt_short_day, fmt_timestamp, parse_date, session_days

logger = logging.getLogger(__name__)

IMPORT_TEMPLATE_FILE_NAME = "Learner_Import_Template.xlsx"


def _na(value: Any) -> Any:
    if value is None or str(value).strip() == "":
        return NOT_AVAILABLE
    return value


def _score_cell(value: Any) -> Any:
    v = score_value(value)
    if v is None:
        return NO_RECORD
    return int(v) if float(v).is_integer() else v


def _avg_cell(value: Optional[int]) -> Any:
    return NO_RECORD if value is None else int(value)


def _header(title: str, labels: Dict[str, str], session: Dict[str, Any], *, with_date: bool = True) -> List[List[Any]]:
    rows = [[f"{title}: {labels['topic']}"], [f"Client: {labels['client']}"]]
    if with_date:
        rows.append([f"Date: {date_range_label(session)}"])
    return rows


def _grid(session: Dict[str, Any], day_grid: Optional[List[Any]]) -> List[date]:
    if day_grid is None:
        return session_days(session)
    days = [parse_date(d) for d in day_grid]
    return [d for d in days if d is not None]


# ---------- Roster ----------
def build_roster_workbook(session: Dict[str, Any], learners: List[Dict[str, Any]],
                          labels: Optional[Dict[str, str]] = None) -> ExportWorkbook:
    labels = labels or session_labels(session)
    rows = []
    for n, e in enumerate(learners, start=1):
        rows.append({
            "#": n,
            "Name": _na(e.get("learner_name")),
            "Email": _na(e.get("learner_email")),
            "Unique ID": _na(e.get("learner_unique_id")),
            "Status": _na(e.get("status")),
            "Enrolled At": _na(fmt_timestamp(e.get("created_at"))),
        })
    table = pd.DataFrame(rows, columns=["#", "Name", "Email", "Unique ID", "Status", "Enrolled At"])

    header = _header("Class Roster", labels, session)
    header.append([f"Total Enrolled: {len(learners)}"])
    header.append([])
    logger.debug("Roster export: %d enrollments", len(rows))
    return ExportWorkbook("Roster", [SheetTable(ROSTER_SHEET, header, table, list(ROSTER_COLUMN_WIDTHS))])


# ---------- Attendance ----------
def build_attendance_workbook(session: Dict[str, Any], learners: List[Dict[str, Any]],
                              attendance: List[Dict[str, Any]], day_grid: Optional[List[Any]] = None,
                              labels: Optional[Dict[str, str]] = None) -> ExportWorkbook:
    labels = labels or session_labels(session)
    days = _grid(session, day_grid)
    names = learner_labels(learners)
    idx = index_by_learner_and_date(attendance, "attendance_date")

    columns = ["Learner"] + [fmt_short_day(d) for d in days] + ["Present", "Absent", "Late"]
    rows = []
    for learner_id, dates in idx.items():
        statuses = attendance_row(dates, days)
        tally = attendance_tally(statuses)
        rows.append(
            [names.get(learner_id, learner_id)]
            + [s or NO_RECORD for s in statuses]
            + [tally["present"], tally["absent"], tally["late"]]
        )
    table = pd.DataFrame(rows, columns=columns)

    header = _header("Attendance Report", labels, session)
    header.append([])
    widths = [25] + [8] * len(days) + [9, 9, 9]
    logger.debug("Attendance export: %d learners x %d days", len(rows), len(days))
    return ExportWorkbook("Attendance", [SheetTable(ATTENDANCE_SHEET, header, table, widths)])


# ---------- Progress ----------
def build_progress_workbook(session: Dict[str, Any], learners: List[Dict[str, Any]],
                            progress: List[Dict[str, Any]], day_grid: Optional[List[Any]] = None,
                            labels: Optional[Dict[str, str]] = None,
                            week_starts_on: int = WEEK_STARTS_ON) -> ExportWorkbook:
    """
    Daily Scores and Weekly Averages sheets.

    With a ``day_grid`` only progress on those days is exported; without one
    every recorded day is kept.
    """
    labels = labels or session_labels(session)
    names = learner_labels(learners)
    idx = index_by_learner_and_date(progress, "progress_date")
    if day_grid is not None:
        keep = {d.isoformat() for d in _grid(session, day_grid)}
        idx = {lid: {k: r for k, r in dates.items() if k in keep} for lid, dates in idx.items()}
        idx = {lid: dates for lid, dates in idx.items() if dates}

    daily_rows = []
    for learner_id, dates in idx.items():
        for day_key, r in dates.items():
            row = {"Learner": names.get(learner_id, learner_id), "Date": fmt_long_day(day_key)}
            for key, _, label in METRICS:
                row[label] = _score_cell(r.get(key))
            row["Notes"] = r.get("notes") or ""
            daily_rows.append(row)
    daily_cols = ["Learner", "Date"] + [label for _, _, label in METRICS] + ["Notes"]
    daily = pd.DataFrame(daily_rows, columns=daily_cols)

    weeks = weekly_table({lid: list(dates.values()) for lid, dates in idx.items()}, names, week_starts_on)
    weekly_rows = []
    for rec in weeks.to_dict(orient="records"):
        row = {
            "Learner": rec["learner"],
            "Week": f"Week {rec['week']}",
            "Week Starting": fmt_long_day(rec["week_start"]),
        }
        for _, name, label in METRICS:
            v = rec[name]
            row[f"Avg {label}"] = _avg_cell(None if pd.isna(v) else v)
        weekly_rows.append(row)
    weekly_cols = ["Learner", "Week", "Week Starting"] + [f"Avg {label}" for _, _, label in METRICS]
    weekly = pd.DataFrame(weekly_rows, columns=weekly_cols)

    daily_header = _header("Progress Report", labels, session, with_date=False) + [[]]
    weekly_header = _header("Weekly Averages", labels, session, with_date=False) + [[]]
    logger.debug("Progress export: %d daily rows, %d weekly rows", len(daily_rows), len(weekly_rows))
    return ExportWorkbook("Progress", [
        SheetTable(DAILY_SCORES_SHEET, daily_header, daily, [25, 15, 14, 12, 14, 40]),
        SheetTable(WEEKLY_AVERAGES_SHEET, weekly_header, weekly, [25, 10, 15, 18, 14, 18]),
    ])


# ---------- Import template ----------
def build_import_template() -> ExportWorkbook:
    table = pd.DataFrame([
        {"Name": "John Doe", "Email": "john.doe@example.com", "Unique ID": "EMP001"},
        {"Name": "Jane Smith", "Email": "jane.smith@example.com", "Unique ID": "EMP002"},
    ])
    sheet = SheetTable(IMPORT_TEMPLATE_SHEET, [], table, list(IMPORT_TEMPLATE_COLUMN_WIDTHS))
    return ExportWorkbook("Learner_Import_Template", [sheet])


# ---------- Output ----------
def serialize(workbook: ExportWorkbook, sink: Optional[BinaryIO] = None) -> bytes:
    """Render the workbook to .xlsx bytes, also writing them to ``sink`` when given."""
    output = BytesIO()
    try:
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            for sheet in workbook.sheets:
                sheet.table.to_excel(writer, sheet_name=sheet.name, index=False, startrow=sheet.table_start_row)
                ws = writer.sheets[sheet.name]
                for r, row in enumerate(sheet.header_rows, start=1):
                    for c, value in enumerate(row, start=1):
                        ws.cell(row=r, column=c, value=value)
                for i, width in enumerate(sheet.column_widths, start=1):
                    ws.column_dimensions[get_column_letter(i)].width = width
    except (IllegalCharacterError, ValueError, TypeError) as e:
        raise SerializationError(f"Could not write {workbook.kind} workbook: {e}") from e

    payload = output.getvalue()
    if sink is not None:
        sink.write(payload)
    logger.debug("Serialized %s workbook (%d bytes)", workbook.kind, len(payload))
    return payload


def export_file_name(kind: str, topic_label: str, timestamp: Optional[datetime] = None) -> str:
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d")
    topic = re.sub(r"\s+", "_", str(topic_label or "").strip())
    return f"{kind}_{topic}_{stamp}.xlsx"
