# errors.py
"""
Typed failures raised by the export/import core.

Every error derives from ValueError, so callers that already guard with
``except ValueError`` keep working.
"""


class TrackerError(ValueError):
    """Base class for structurally invalid input."""


class InvalidRangeError(TrackerError):
    """End date precedes start date."""


class MissingHeaderError(TrackerError):
    """Import file has no header row followed by a data row."""


class NoRecognizedColumnsError(TrackerError):
    """Import file has no name, email or id column."""


class MalformedFileError(TrackerError):
    """Bytes cannot be read as CSV or a spreadsheet workbook."""


class SerializationError(TrackerError):
    """A workbook cell holds a value that cannot be written."""


class InvalidTimeError(TrackerError):
    """Time of day is not an ``HH:MM`` value."""
