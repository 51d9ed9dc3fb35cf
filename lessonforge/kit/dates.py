"""Self-contained date formatting (the ``lessonkit.dates`` namespace)."""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

DateLike = Union[datetime, date, str, int, float]

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Longest tokens first so "MMMM" wins over "MM" and "M"
_TOKEN_PATTERN = re.compile(r"yyyy|yy|MMMM|MMM|MM|M|dd|d|HH|H|hh|h|mm|m|ss|s|a|A")


def _to_datetime(value: DateLike) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _token_value(token: str, moment: datetime) -> str:
    hour12 = moment.hour % 12 or 12
    return {
        "yyyy": f"{moment.year:04d}",
        "yy": f"{moment.year % 100:02d}",
        "MMMM": MONTH_NAMES[moment.month - 1],
        "MMM": MONTH_NAMES[moment.month - 1][:3],
        "MM": f"{moment.month:02d}",
        "M": str(moment.month),
        "dd": f"{moment.day:02d}",
        "d": str(moment.day),
        "HH": f"{moment.hour:02d}",
        "H": str(moment.hour),
        "hh": f"{hour12:02d}",
        "h": str(hour12),
        "mm": f"{moment.minute:02d}",
        "m": str(moment.minute),
        "ss": f"{moment.second:02d}",
        "s": str(moment.second),
        "a": "pm" if moment.hour >= 12 else "am",
        "A": "PM" if moment.hour >= 12 else "AM",
    }[token]


def format_date(value: DateLike, pattern: str = "yyyy-MM-dd") -> str:
    """
    Format ``value`` with date-fns style tokens (``yyyy``, ``MMM``, ``dd``, ``HH``, ``a`` ...).

    Anything that cannot be read as a date is returned as ``str(value)``.
    Text inside single quotes is copied literally: ``"'Day' d"``.
    """
    moment = _to_datetime(value)
    if moment is None:
        return str(value)

    parts = re.split(r"('[^']*')", pattern)
    rendered = []
    for part in parts:
        if len(part) >= 2 and part.startswith("'") and part.endswith("'"):
            rendered.append(part[1:-1])
        else:
            rendered.append(_TOKEN_PATTERN.sub(lambda match: _token_value(match.group(0), moment), part))
    return "".join(rendered)


def add_days(value: DateLike, days: int) -> Optional[datetime]:
    moment = _to_datetime(value)
    return None if moment is None else moment + timedelta(days=days)


def days_between(start: DateLike, end: DateLike) -> Optional[int]:
    first, second = _to_datetime(start), _to_datetime(end)
    if first is None or second is None:
        return None
    if (first.tzinfo is None) != (second.tzinfo is None):
        first, second = first.replace(tzinfo=None), second.replace(tzinfo=None)
    return (second.date() - first.date()).days


def exports() -> Dict[str, Any]:
    return {
        "format_date": format_date,
        "add_days": add_days,
        "days_between": days_between,
        "MONTH_NAMES": MONTH_NAMES,
    }
