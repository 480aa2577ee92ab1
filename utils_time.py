# utils_time.py
import pandas as pd
from datetime import datetime, date, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from constants import DEFAULT_TIME, WEEK_STARTS_ON
from errors import InvalidRangeError, InvalidTimeError


def parse_ts(ts: Any) -> Optional[datetime]:
    if ts is None:
        return None
    if isinstance(ts, (datetime, pd.Timestamp)):
        try:
            dt = pd.to_datetime(ts).to_pydatetime()
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
            return dt
        except (ValueError, TypeError, OverflowError):
            return None
    if isinstance(ts, date):
        return datetime(ts.year, ts.month, ts.day)
    s = str(ts).strip()
    if not s:
        return None
    fmts = [
        "%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%d %H:%M:%S%z", "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d"
    ]
    for f in fmts:
        try:
            dt = datetime.strptime(s, f)
            if dt.tzinfo is not None:
                dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
            return dt
        except ValueError:
            continue
    try:
        dt = pd.to_datetime(s, errors="coerce")
        if pd.isna(dt):
            return None
        py_dt = dt.to_pydatetime()
        if py_dt.tzinfo is not None:
            py_dt = py_dt.astimezone(timezone.utc).replace(tzinfo=None)
        return py_dt
    except (ValueError, TypeError, OverflowError):
        return None


def parse_date(value: Any) -> Optional[date]:
    """
    Calendar date of a date, datetime or ISO string; None when unparseable.

    Offset-aware values keep their own wall-clock day rather than the UTC one.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if len(s) == 10:
            try:
                return date.fromisoformat(s)
            except ValueError:
                pass
        try:
            ts = pd.Timestamp(s)
        except (ValueError, TypeError, OverflowError):
            ts = None
        if ts is not None and not pd.isna(ts):
            return ts.date()
    dt = parse_ts(value)
    return dt.date() if dt else None


def date_key(value: Any) -> Optional[str]:
    d = parse_date(value)
    return d.isoformat() if d else None


def parse_hhmm(time_str: Optional[str]) -> Tuple[int, int]:
    """Hour and minute of an ``HH:MM[:SS]`` string; empty falls back to 09:00."""
    s = (time_str or DEFAULT_TIME).strip() or DEFAULT_TIME
    parts = s.split(":")
    try:
        hours = int(parts[0])
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError as e:
        raise InvalidTimeError(f"Unparseable time: {time_str!r}") from e
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise InvalidTimeError(f"Time out of range: {time_str!r}")
    return hours, minutes


# ---------- Day grid ----------
def expand_days(start_date: Any, end_date: Any = None) -> List[date]:
    start = parse_date(start_date)
    if start is None:
        raise InvalidRangeError(f"Unparseable start date: {start_date!r}")
    end = None
    if end_date not in (None, ""):
        end = parse_date(end_date)
        if end is None:
            raise InvalidRangeError(f"Unparseable end date: {end_date!r}")
    if end is None or end == start:
        return [start]
    if end < start:
        raise InvalidRangeError(f"End date {end.isoformat()} precedes start date {start.isoformat()}")
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def session_days(session: Dict[str, Any]) -> List[date]:
    return expand_days(session.get("session_date"), session.get("end_date"))


def is_multi_day(session: Dict[str, Any]) -> bool:
    end = parse_date(session.get("end_date"))
    return end is not None and end != parse_date(session.get("session_date"))


def week_start(d: Any, week_starts_on: int = WEEK_STARTS_ON) -> date:
    """First day of the week containing ``d`` (0=Sunday ... 6=Saturday)."""
    day = parse_date(d)
    if day is None:
        raise ValueError(f"Unparseable date: {d!r}")
    if not 0 <= int(week_starts_on) <= 6:
        raise ValueError(f"week_starts_on must be 0..6, got {week_starts_on!r}")
    sunday_based = day.isoweekday() % 7
    offset = (sunday_based - int(week_starts_on)) % 7
    return day - timedelta(days=offset)


# ---------- Display formats ----------
def fmt_short_day(d: date) -> str:
    return f"{d:%b} {d.day}"


def fmt_long_day(d: Any) -> str:
    day = parse_date(d)
    if day is None:
        return str(d)
    return f"{day:%b} {day.day}, {day.year}"


def fmt_timestamp(ts: Any) -> Optional[str]:
    dt = parse_ts(ts)
    if dt is None:
        return None
    hour12 = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%b} {dt.day}, {dt.year} {hour12}:{dt:%M} {meridiem}"


def date_range_label(session: Dict[str, Any]) -> str:
    label = fmt_long_day(session.get("session_date"))
    if is_multi_day(session):
        label += f" - {fmt_long_day(session.get('end_date'))}"
    return label
