import json
from io import BytesIO

import openpyxl
import pytest

from errors import MalformedFileError, MissingHeaderError, NoRecognizedColumnsError
from loaders import detect_columns, load_json, merge_data, normalize_union, parse_import_file
from records import ImportRow
from report_builder import build_import_template, serialize


# ---------- Column detection ----------
def test_detect_columns_by_substring():
    assert detect_columns(["Full Name", "Work Email", "Employee ID"]) == {"name": 0, "email": 1, "id": 2}


def test_detect_columns_email_id_is_not_the_id_column():
    assert detect_columns(["Email ID", "Badge Id"]) == {"email": 0, "id": 1}


def test_detect_columns_first_match_wins():
    assert detect_columns(["  NAME ", "Nickname", "email"]) == {"name": 0, "email": 2}


def test_detect_columns_none_found():
    assert detect_columns(["Department", "Location"]) == {}


# ---------- CSV import ----------
def test_parse_csv_rows_in_order():
    raw = b"Full Name,Work Email,Employee ID\nAda Lovelace , ada@example.com,E1\nBob,,E2\n"
    assert parse_import_file(raw) == [
        ImportRow(name="Ada Lovelace", email="ada@example.com", unique_id="E1"),
        ImportRow(name="Bob", email="", unique_id="E2"),
    ]


def test_parse_drops_rows_without_target_values():
    raw = b"Name,Email,Department\nAda,,Sales\n,  ,Support\n , , \nBob,bob@example.com,\n"
    rows = parse_import_file(raw, "learners.csv")
    assert [r.name for r in rows] == ["Ada", "Bob"]


def test_parse_missing_columns_default_to_empty():
    rows = parse_import_file(b"Email\nada@example.com\n")
    assert rows == [ImportRow(email="ada@example.com")]


def test_parse_header_only_file():
    with pytest.raises(MissingHeaderError):
        parse_import_file(b"Name,Email,ID\n")


def test_parse_whitespace_only_data_row_returns_nothing():
    assert parse_import_file(b"Name,Email,ID\n  ,  ,  \n") == []


def test_parse_blank_line_between_rows_keeps_order():
    rows = parse_import_file(b"Name,Email\n\nAda,ada@example.com\n,\nBob,\n")
    assert rows == [ImportRow(name="Ada", email="ada@example.com"), ImportRow(name="Bob")]


def test_parse_header_with_trailing_empty_lines():
    with pytest.raises(MissingHeaderError):
        parse_import_file(b"Name,Email,ID\n\n\n")


def test_parse_no_recognized_columns():
    with pytest.raises(NoRecognizedColumnsError):
        parse_import_file(b"Department,Location\nSales,Floor 2\n")


def test_parse_utf8_bom():
    rows = parse_import_file("\ufeffName\nZoë\n".encode("utf-8"))
    assert rows == [ImportRow(name="Zoë")]


# ---------- Workbook import ----------
def test_parse_workbook_from_template():
    rows = parse_import_file(serialize(build_import_template()), "Learner_Import_Template.xlsx")
    assert rows == [
        ImportRow(name="John Doe", email="john.doe@example.com", unique_id="EMP001"),
        ImportRow(name="Jane Smith", email="jane.smith@example.com", unique_id="EMP002"),
    ]


def test_parse_workbook_reads_only_first_sheet():
    wb = openpyxl.Workbook()
    first = wb.active
    first.append(["Name", "Email"])
    first.append(["Ada", "ada@example.com"])
    other = wb.create_sheet("Archive")
    other.append(["Name", "Email"])
    other.append(["Ghost", "ghost@example.com"])
    buf = BytesIO()
    wb.save(buf)
    rows = parse_import_file(buf.getvalue(), "learners.xlsx")
    assert rows == [ImportRow(name="Ada", email="ada@example.com")]


@pytest.mark.parametrize("raw, filename", [
    (b"PK\x03\x04not really a zip", None),
    (b"plain text pretending", "learners.xlsx"),
    (b"\xff\xfe\x00\x01\x02", None),
    (b"Name\x00,Email\n", None),
])
def test_parse_malformed_bytes(raw, filename):
    with pytest.raises(MalformedFileError):
        parse_import_file(raw, filename)


def test_parse_rejects_non_bytes():
    with pytest.raises(MalformedFileError):
        parse_import_file("Name\nAda\n")


def test_import_row_to_enrollment():
    payload = ImportRow(name="Ada", unique_id="E1").to_enrollment(7)
    assert payload == {
        "session_id": 7,
        "learner_name": "Ada",
        "learner_email": None,
        "learner_unique_id": "E1",
        "status": "enrolled",
    }


# ---------- Snapshots ----------
def test_normalize_union_flattens_nested_enrollments():
    raw = {
        "sessions": [{"id": 1, "topic": "refresher", "session_enrollments": [{"id": 10, "learner_name": "A"}]}],
        "attendance": {"learner_id": "u1", "session_id": 1, "attendance_date": "2024-01-01"},
    }
    data = normalize_union(raw)
    assert data["training_sessions"] == [{"id": 1, "topic": "refresher"}]
    assert data["session_enrollments"] == [{"id": 10, "learner_name": "A", "session_id": 1}]
    assert len(data["learner_attendance"]) == 1
    assert data["learner_progress"] == []


def test_load_json_from_bytes_and_path(tmp_path):
    raw = {"data": {"training_sessions": [{"id": 3}], "learner_progress": [{"learner_id": "u1"}]}}
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    from_path = load_json(str(path))
    assert from_path == load_json(json.dumps(raw).encode("utf-8"))
    assert from_path["training_sessions"] == [{"id": 3}]


def test_load_json_missing_file_is_value_error():
    with pytest.raises(ValueError):
        load_json("does-not-exist.json")


def test_merge_data_later_session_wins():
    a = {"training_sessions": [{"id": 1, "status": "scheduled"}], "learner_attendance": [{"learner_id": "u1"}]}
    b = {"training_sessions": [{"id": 1, "status": "cancelled"}], "learner_attendance": [{"learner_id": "u2"}]}
    merged = merge_data(a, b)
    assert merged["training_sessions"] == [{"id": 1, "status": "cancelled"}]
    assert len(merged["learner_attendance"]) == 2
    assert merge_data() == {}
