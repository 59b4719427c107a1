"""Conversion of heterogeneous spreadsheet date values to ISO strings."""

import datetime
import math
import re

from openpyxl.utils.datetime import from_excel

_STRAY_CHARS_RE = re.compile(r'[\r\n\u00a0]')  # line breaks and non-breaking spaces inside a cell
_SEPARATOR_RE = re.compile(r'[.\-]')


def _pad(part: str) -> str:
    return part.zfill(2)


def _from_serial(value: float) -> str | None:
    """Convert a spreadsheet serial day count (1900 date system)."""
    if not math.isfinite(value) or value < 1:
        return None
    try:
        converted = from_excel(value)
    except (OverflowError, ValueError):
        return None
    if not isinstance(converted, datetime.datetime):
        return None
    return converted.date().isoformat()


def _from_text(text: str) -> str | None:
    parts = _SEPARATOR_RE.sub('/', text).split('/')
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None

    first, second, third = parts
    if len(first) == 4:
        return f"{first}-{_pad(second)}-{_pad(third)}"

    if len(third) == 4:
        p1, p2 = int(first), int(second)
        # Whichever leading part cannot be a month is the day; day-first otherwise
        if p2 > 12 and p1 <= 12:
            day, month = p2, p1
        else:
            day, month = p1, p2
        return f"{third}-{month:02d}-{day:02d}"

    return None


def to_iso_date(value) -> str | None:
    """Normalize a date of unknown shape to ``YYYY-MM-DD``.

    Accepts date/datetime objects, spreadsheet serial numbers and free text
    in ``YYYY/MM/DD``, ``DD/MM/YYYY`` or ``MM/DD/YYYY`` form (with ``.`` or
    ``-`` separators). Ambiguous day/month order is resolved by magnitude,
    falling back to day-first.

    Args:
        value: Raw cell value.

    Returns:
        ISO date string, or None if the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()

    if isinstance(value, (int, float)):
        return _from_serial(float(value))

    text = _STRAY_CHARS_RE.sub('', str(value).strip())
    if not text:
        return None
    return _from_text(text)
