# records.py
"""
Value types passed between the indexing, aggregation and export layers.

Raw backend rows (sessions, enrollments, attendance, progress) stay plain
dicts; only the shapes this project derives get a dataclass.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Union

import pandas as pd


# ---------- Learner identity ----------
@dataclass(frozen=True)
class AccountLearner:
    """Enrollment linked to a learner account."""
    learner_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    unique_id: Optional[str] = None


@dataclass(frozen=True)
class ExternalLearner:
    """Enrollment captured as free text, with no account behind it."""
    name: Optional[str] = None
    email: Optional[str] = None
    unique_id: Optional[str] = None


LearnerRef = Union[AccountLearner, ExternalLearner]


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def learner_ref(enrollment: Dict[str, Any]) -> LearnerRef:
    name = _clean(enrollment.get("learner_name"))
    email = _clean(enrollment.get("learner_email"))
    unique_id = _clean(enrollment.get("learner_unique_id"))
    learner_id = _clean(enrollment.get("learner_id"))
    if learner_id is not None:
        return AccountLearner(learner_id=learner_id, name=name, email=email, unique_id=unique_id)
    return ExternalLearner(name=name, email=email, unique_id=unique_id)


def display_name(ref: LearnerRef, fallback: str = "Unknown") -> str:
    return ref.name or ref.email or fallback


# ---------- Derived rows ----------
@dataclass
class WeeklyAverage:
    """Per-learner weekly rollup. ``None`` means no day in the week had a value."""
    learner_id: str
    week_start: date
    participation: Optional[int]
    accuracy: Optional[int]
    productivity: Optional[int]
    record_count: int = 0

    def metric(self, name: str) -> Optional[int]:
        return getattr(self, name)


@dataclass
class ImportRow:
    name: str = ""
    email: str = ""
    unique_id: str = ""

    def is_blank(self) -> bool:
        return not (self.name or self.email or self.unique_id)

    def to_enrollment(self, session_id: Any) -> Dict[str, Any]:
        """Insert payload for a new enrollment; blank fields become null."""
        return {
            "session_id": session_id,
            "learner_name": self.name or None,
            "learner_email": self.email or None,
            "learner_unique_id": self.unique_id or None,
            "status": "enrolled",
        }


@dataclass
class CalendarEvent:
    title: str
    start_date: str
    description: Optional[str] = None
    location: Optional[str] = None
    end_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


# ---------- Workbook ----------
@dataclass
class SheetTable:
    name: str
    header_rows: List[List[Any]]
    table: pd.DataFrame
    column_widths: List[int] = field(default_factory=list)

    @property
    def table_start_row(self) -> int:
        """0-based row where the table header is written."""
        return len(self.header_rows)


@dataclass
class ExportWorkbook:
    kind: str
    sheets: List[SheetTable]

    @property
    def sheet_names(self) -> List[str]:
        return [s.name for s in self.sheets]

    def sheet(self, name: str) -> SheetTable:
        for s in self.sheets:
            if s.name == name:
                return s
        raise KeyError(name)
