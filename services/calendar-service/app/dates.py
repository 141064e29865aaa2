from datetime import date, datetime, timezone
from dateutil import parser

from .errors import InvalidDateError


def _utc_midnight(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def normalize_date(value) -> datetime:
    """
    Canonicalize a calendar date/time input to an aware UTC datetime.

    Date-only values become UTC midnight of the calendar date as written, so
    a bare date never drifts to a neighbouring day. Anything carrying a time
    is a real instant: naive values are read as UTC, and values with an offset
    are converted to UTC, midnight included.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return _utc_midnight(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidDateError(value)
        try:
            parsed = parser.isoparse(text)
        except (ValueError, OverflowError):
            raise InvalidDateError(value)
    else:
        raise InvalidDateError(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Render as ``2024-03-01T00:00:00.000Z``."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
