# loaders.py
import csv
import io
import json
import logging
import zipfile
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from errors import MalformedFileError, MissingHeaderError, NoRecognizedColumnsError
from records import ImportRow

logger = logging.getLogger(__name__)

CANON_KEYS = ["training_sessions", "session_enrollments", "learner_attendance", "learner_progress"]

ALIASES = {
    "sessions": "training_sessions",
    "enrollments": "session_enrollments",
    "attendance": "learner_attendance",
    "progress": "learner_progress",
}

ZIP_SIGNATURE = b"PK\x03\x04"


# ---------- JSON snapshot loading ----------
def load_json_raw(path_or_bytes) -> Any:
    if hasattr(path_or_bytes, "read"):
        return json.load(path_or_bytes)
    if isinstance(path_or_bytes, (bytes, bytearray)):
        return json.loads(path_or_bytes.decode("utf-8"))
    if isinstance(path_or_bytes, str):
        try:
            with open(path_or_bytes, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return json.loads(path_or_bytes)
    return json.loads(path_or_bytes)


def normalize_union(raw: Any) -> Dict[str, List[Dict[str, Any]]]:
    buckets: Dict[str, List[Dict[str, Any]]] = {k: [] for k in CANON_KEYS}

    def _rows(value):
        if isinstance(value, dict):
            return [value]
        if isinstance(value, list):
            return [v for v in value if isinstance(v, dict)]
        return []

    def _ingest_session(s: Dict[str, Any]):
        session = dict(s)
        nested = _rows(session.pop("session_enrollments", None))
        buckets["training_sessions"].append(session)
        for e in nested:
            e = dict(e)
            e.setdefault("session_id", session.get("id"))
            buckets["session_enrollments"].append(e)

    def _ingest_dict(d: Dict[str, Any]):
        for key, value in d.items():
            canon = ALIASES.get(key, key)
            if canon == "training_sessions":
                for s in _rows(value):
                    _ingest_session(s)
            elif canon in buckets:
                buckets[canon].extend(_rows(value))
            elif isinstance(value, dict):
                _ingest_dict(value)

    if isinstance(raw, dict):
        _ingest_dict(raw)
    elif isinstance(raw, list):
        for item in raw:
            if isinstance(item, dict):
                _ingest_dict(item)
    return buckets


def load_json(path_or_bytes) -> Dict[str, List[Dict[str, Any]]]:
    return normalize_union(load_json_raw(path_or_bytes))


def merge_data(*datasets: Dict[str, Any]) -> Dict[str, Any]:
    if not datasets:
        return {}
    merged: Dict[str, List[Any]] = {}
    keys = set().union(*[set(ds.keys()) for ds in datasets])
    for k in keys:
        merged[k] = []
        for ds in datasets:
            merged[k].extend(ds.get(k, []))

    # Same session exported twice keeps the later copy.
    if "training_sessions" in merged:
        by_id: Dict[Any, Dict[str, Any]] = {}
        for s in merged["training_sessions"]:
            by_id[str(s.get("id"))] = s
        merged["training_sessions"] = list(by_id.values())
    return merged


# ---------- Bulk learner import ----------
def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _trim_trailing_empty(rows: List[List[Any]]) -> List[List[Any]]:
    end = len(rows)
    while end and not any(str(cell) for cell in rows[end - 1]):
        end -= 1
    return rows[:end]


def _read_workbook_rows(file_bytes: bytes) -> List[List[Any]]:
    try:
        df = pd.read_excel(io.BytesIO(file_bytes), sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as e:
        raise MalformedFileError(f"Could not read spreadsheet: {e}") from e
    return _trim_trailing_empty([[_cell_text(v) for v in row] for row in df.itertuples(index=False)])


def _read_csv_rows(file_bytes: bytes) -> List[List[Any]]:
    try:
        text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedFileError("File is neither UTF-8 text nor an .xlsx workbook") from e
    if "\x00" in text:
        raise MalformedFileError("File contains binary data")
    try:
        return _trim_trailing_empty(list(csv.reader(io.StringIO(text, newline=""))))
    except csv.Error as e:
        raise MalformedFileError(f"Could not read CSV: {e}") from e


def read_table_rows(file_bytes: bytes, filename: Optional[str] = None) -> List[List[Any]]:
    """
    First sheet (or the CSV) as lists of cell strings.

    Blank and whitespace-only rows are kept and count towards the header +
    data row minimum; only fully empty rows at the end of the file are cut.
    """
    if not isinstance(file_bytes, (bytes, bytearray)):
        raise MalformedFileError(f"Expected bytes, got {type(file_bytes).__name__}")
    name = (filename or "").lower()
    if bytes(file_bytes[:4]) == ZIP_SIGNATURE or name.endswith((".xlsx", ".xlsm")):
        return _read_workbook_rows(bytes(file_bytes))
    return _read_csv_rows(bytes(file_bytes))


def detect_columns(header: List[Any]) -> Dict[str, int]:
    """
    Column index for name / email / id, matched by substring on the lower-cased header.

    An "id" header that also mentions "email" is not the id column. The first
    qualifying column wins; columns not found are left out of the result.
    """
    headers = [_cell_text(h).lower().strip() for h in header]
    found: Dict[str, int] = {}
    for i, h in enumerate(headers):
        if "name" in h and "name" not in found:
            found["name"] = i
        if "email" in h and "email" not in found:
            found["email"] = i
        if "id" in h and "email" not in h and "id" not in found:
            found["id"] = i
    return found


def parse_import_file(file_bytes: bytes, filename: Optional[str] = None) -> List[ImportRow]:
    rows = read_table_rows(file_bytes, filename)
    if len(rows) < 2:
        raise MissingHeaderError("File must have headers and at least one data row")

    cols = detect_columns(rows[0])
    if not cols:
        raise NoRecognizedColumnsError("File must have at least one column: Name, Email, or ID")

    def _field(row: List[Any], key: str) -> str:
        i = cols.get(key)
        if i is None or i >= len(row):
            return ""
        return _cell_text(row[i]).strip()

    learners: List[ImportRow] = []
    dropped = 0
    for row in rows[1:]:
        item = ImportRow(name=_field(row, "name"), email=_field(row, "email"), unique_id=_field(row, "id"))
        if item.is_blank():
            dropped += 1
            continue
        learners.append(item)

    if dropped:
        logger.info("Import skipped %d rows with no name, email or id", dropped)
    logger.debug("Import parsed %d learners (columns: %s)", len(learners), cols)
    return learners
