# calendar_export.py
"""
Calendar interchange for a single training session.

- to_calendar_file(event) -> .ics bytes (one VEVENT)
- to_google_url(event) / to_outlook_url(event) -> "add to calendar" deep links

Events are ``CalendarEvent`` instances or dicts with the same keys
(``title``, ``start_date``, ``end_date``, ``start_time``, ``end_time``,
``description``, ``location``). Nothing here touches the network.
"""

import logging
import random
import re
import string
import time
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from constants import (
    GOOGLE_CALENDAR_URL,
    ICS_PRODID,
    ICS_UID_DOMAIN,
    OUTLOOK_CALENDAR_URL,
)
from errors import InvalidRangeError
from joins import session_labels
from records import CalendarEvent
from utils_time import parse_date, parse_hhmm

logger = logging.getLogger(__name__)

FLOATING_FMT = "%Y%m%dT%H%M%S"
_BASE36 = string.digits + string.ascii_lowercase

EventLike = Union[CalendarEvent, Dict[str, Any]]


def _as_event(event: EventLike) -> CalendarEvent:
    if isinstance(event, CalendarEvent):
        return event
    return CalendarEvent(
        title=event.get("title") or "",
        start_date=event.get("start_date"),
        description=event.get("description"),
        location=event.get("location"),
        end_date=event.get("end_date"),
        start_time=event.get("start_time"),
        end_time=event.get("end_time"),
    )


def _at(day: Any, time_str: Optional[str]) -> datetime:
    d = parse_date(day)
    if d is None:
        raise InvalidRangeError(f"Unparseable event date: {day!r}")
    hours, minutes = parse_hhmm(time_str)
    return datetime(d.year, d.month, d.day, hours, minutes, 0)


def event_bounds(event: EventLike):
    """Naive start and end datetimes; end date falls back to the start date."""
    ev = _as_event(event)
    start = _at(ev.start_date, ev.start_time)
    end = _at(ev.end_date or ev.start_date, ev.end_time)
    return start, end


def default_uid(now_ms: Optional[int] = None) -> str:
    ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
    suffix = "".join(random.choice(_BASE36) for _ in range(7))
    return f"{ms}-{suffix}@{ICS_UID_DOMAIN}"


def escape_text(value: Optional[str]) -> str:
    """TEXT value escaping for .ics content lines."""
    s = "" if value is None else str(value)
    s = s.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,")
    return s.replace("\r\n", "\\n").replace("\n", "\\n").replace("\r", "\\n")


# ---------- .ics ----------
def to_calendar_file(event: EventLike, uid_factory: Optional[Callable[[], str]] = None,
                     now: Optional[datetime] = None) -> bytes:
    ev = _as_event(event)
    start, end = event_bounds(ev)
    uid = (uid_factory or default_uid)()
    stamp = (now or datetime.now()).strftime(FLOATING_FMT)

    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{stamp}",
        f"DTSTART:{start.strftime(FLOATING_FMT)}",
        f"DTEND:{end.strftime(FLOATING_FMT)}",
        f"SUMMARY:{escape_text(ev.title)}",
        f"DESCRIPTION:{escape_text(ev.description)}",
        f"LOCATION:{escape_text(ev.location)}",
        "STATUS:CONFIRMED",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    logger.debug("Calendar file for %r (uid %s)", ev.title, uid)
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")


def calendar_file_name(title: str) -> str:
    return re.sub(r"\s+", "_", str(title or "").strip()) + ".ics"


# ---------- Web calendar links ----------
def to_google_url(event: EventLike) -> str:
    ev = _as_event(event)
    start, end = event_bounds(ev)
    params = {
        "action": "TEMPLATE",
        "text": ev.title or "",
        "dates": f"{start.strftime(FLOATING_FMT)}/{end.strftime(FLOATING_FMT)}",
        "details": ev.description or "",
        "location": ev.location or "",
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def _utc_iso(dt: datetime, tz: Optional[tzinfo]) -> str:
    local = dt.replace(tzinfo=tz or timezone.utc)
    utc = local.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def to_outlook_url(event: EventLike, tz: Union[tzinfo, str, None] = None) -> str:
    """
    Outlook.com compose link. Session times are wall-clock times in ``tz``
    (a tzinfo or IANA name, UTC when omitted) and are sent as UTC instants.
    """
    ev = _as_event(event)
    start, end = event_bounds(ev)
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    params = {
        "path": "/calendar/action/compose",
        "rru": "addevent",
        "subject": ev.title or "",
        "startdt": _utc_iso(start, zone),
        "enddt": _utc_iso(end, zone),
        "body": ev.description or "",
        "location": ev.location or "",
    }
    return f"{OUTLOOK_CALENDAR_URL}?{urlencode(params)}"


# ---------- Session adapter ----------
def event_from_session(session: Dict[str, Any], labels: Optional[Dict[str, str]] = None) -> CalendarEvent:
    labels = labels or session_labels(session)
    title = f"{labels['topic']} - {labels['client']}"
    description_parts = []
    if labels.get("audience"):
        description_parts.append(f"Audience: {labels['audience']}")
    if session.get("notes"):
        description_parts.append(str(session["notes"]))
    return CalendarEvent(
        title=title,
        start_date=session.get("session_date"),
        description="\n".join(description_parts) or None,
        location=session.get("location") or None,
        end_date=session.get("end_date") or None,
        start_time=session.get("start_time") or None,
        end_time=session.get("end_time") or None,
    )
