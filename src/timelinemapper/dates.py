"""Date parsing and display formatting for timeline events.

Raw date attributes arrive in three shapes: epoch milliseconds (the usual
feature-service encoding), ISO-8601 strings (GeoJSON exports) or
``datetime`` objects. :func:`format_date` renders any of them with a
day.js-style pattern such as ``"MMM D, YYYY"``.

Tokens
------
``YYYY YY``          year
``MMMM MMM MM M``    month name / abbreviation / zero-padded / number
``DD D``             day of month
``dddd ddd``         weekday name / abbreviation
``HH H hh h``        24h / 12h hour
``mm m ss s SSS``    minutes, seconds, milliseconds
``A a``              AM/PM, am/pm
``ZZ Z``             UTC offset as ``+0000`` / ``+00:00``
``[text]``           literal text
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, time
from typing import Any

from timelinemapper.core.settings import DEFAULT_DATE_FORMAT

INVALID_DATE = "Invalid Date"

_TOKEN_RE = re.compile(
    r"\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|SSS|A|a|ZZ|Z"
)

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_EPOCH_MILLIS_RE = re.compile(r"-?\d{10,}(?:\.\d+)?")
_YEAR_RE = re.compile(r"\d{4}")


def _from_millis(value: float) -> datetime:
    return datetime.fromtimestamp(value / 1000.0, tz=UTC)


def parse_date(value: Any) -> datetime | None:
    """Parse ``value`` into a timezone-aware datetime, or None if impossible.

    Naive datetimes and ISO strings without an offset are read as UTC.
    Strings of ten or more digits are epoch milliseconds; a four-digit
    string is a year (``"2020"`` is 2020-01-01).
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=UTC)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=UTC)
        if isinstance(value, int | float):
            return _from_millis(float(value))
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if _EPOCH_MILLIS_RE.fullmatch(text):
                return _from_millis(float(text))
            if _YEAR_RE.fullmatch(text):
                return datetime(int(text), 1, 1, tzinfo=UTC)
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    except (ValueError, OverflowError, OSError):
        return None
    return None


def to_epoch_millis(value: Any) -> int | float | None:
    """Return ``value`` as epoch milliseconds; numbers pass through untouched."""
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value
    parsed = parse_date(value)
    if parsed is None:
        return None
    return int(parsed.timestamp() * 1000)


def _offset(dt: datetime, colon: bool) -> str:
    delta = dt.utcoffset()
    minutes = int(delta.total_seconds() // 60) if delta is not None else 0
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}" if colon else f"{sign}{hours:02d}{mins:02d}"


def _render_token(token: str, dt: datetime) -> str:
    hour12 = dt.hour % 12 or 12
    match token:
        case "YYYY":
            return f"{dt.year:04d}"
        case "YY":
            return f"{dt.year % 100:02d}"
        case "MMMM":
            return _MONTHS[dt.month - 1]
        case "MMM":
            return _MONTHS[dt.month - 1][:3]
        case "MM":
            return f"{dt.month:02d}"
        case "M":
            return str(dt.month)
        case "DD":
            return f"{dt.day:02d}"
        case "D":
            return str(dt.day)
        case "dddd":
            return _WEEKDAYS[dt.weekday()]
        case "ddd":
            return _WEEKDAYS[dt.weekday()][:3]
        case "HH":
            return f"{dt.hour:02d}"
        case "H":
            return str(dt.hour)
        case "hh":
            return f"{hour12:02d}"
        case "h":
            return str(hour12)
        case "mm":
            return f"{dt.minute:02d}"
        case "m":
            return str(dt.minute)
        case "ss":
            return f"{dt.second:02d}"
        case "s":
            return str(dt.second)
        case "SSS":
            return f"{dt.microsecond // 1000:03d}"
        case "A":
            return "AM" if dt.hour < 12 else "PM"
        case "a":
            return "am" if dt.hour < 12 else "pm"
        case "ZZ":
            return _offset(dt, colon=False)
        case "Z":
            return _offset(dt, colon=True)
    return token


def format_date(value: Any, pattern: str | None = None, utc: bool = True) -> str:
    """Render a raw date value for display.

    Parameters
    ----------
    value:
        ``datetime``/``date``, epoch milliseconds, or a date string.
    pattern:
        Day.js-style pattern; defaults to ``MM/DD/YYYY``.
    utc:
        Render in UTC (default). ``False`` converts to the host's local time.

    Returns
    -------
    str
        The formatted string, or ``"Invalid Date"`` when parsing fails.
    """
    parsed = parse_date(value)
    if parsed is None:
        return INVALID_DATE
    dt = parsed.astimezone(UTC) if utc else parsed.astimezone()

    def _sub(match: re.Match[str]) -> str:
        literal = match.group(1)
        if literal is not None:
            return literal
        return _render_token(match.group(0), dt)

    return _TOKEN_RE.sub(_sub, pattern or DEFAULT_DATE_FORMAT)


__all__ = ["INVALID_DATE", "parse_date", "to_epoch_millis", "format_date"]
