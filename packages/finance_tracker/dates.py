"""Normalize heterogeneous bank export dates to ``YYYY-MM-DD``.

Bank exports disagree on separators and on day/month order. Every date that
enters the store passes through :func:`normalize_date` first, so stored
``transaction_date`` values sort and compare as plain strings.

Rules, in order:

1. Empty input → ``""``.
2. Anything after the first space (a time component) is dropped.
3. A date portion already shaped ``YYYY-MM-DD`` is returned as is.
4. ``a/b/c`` is read as ``DD/MM/YYYY``. When ``dayfirst`` is disabled and
   the first part is 12 or less, it is read as ``MM/DD/YYYY`` instead.
5. ``a-b-c`` is ``YYYY-MM-DD`` when the first segment has four characters,
   otherwise ``DD-MM-YYYY``. A four-character first segment whose parts are
   not plain integers (``2024-12-25T10:00:00``) is reparsed generically.
6. Anything else goes through ``dateutil``'s generic parser.

Input that does not yield a real calendar date (including ``/`` or ``-``
forms with other than three parts, and generic input without an explicit
year) is returned unchanged. This function never raises.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from dateutil import parser as date_parser

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _build(year: str, month: str, day: str) -> date | None:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def _parse_slashed(parts: list[str], *, dayfirst: bool) -> date | None:
    first, second, year = parts
    try:
        first_is_day = int(first) > 12
    except ValueError:
        return None
    if first_is_day or dayfirst:
        return _build(year, second, first)
    return _build(year, first, second)


def _parse_dashed(parts: list[str], *, dayfirst: bool) -> date | None:
    if len(parts[0]) == 4:
        if not all(part.isdigit() for part in parts):
            # ISO-8601 with a "T" time part, e.g. 2024-12-25T10:00:00.
            return _parse_generic("-".join(parts), dayfirst=dayfirst)
        return _build(parts[0], parts[1], parts[2])
    return _build(parts[2], parts[1], parts[0])


# Two defaults with different years; a year missing from the input shows up
# as a disagreement between the two parses.
_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 1, 1))


def _parse_generic(value: str, *, dayfirst: bool) -> date | None:
    try:
        first, second = (
            date_parser.parse(value, dayfirst=dayfirst, default=default) for default in _DEFAULTS
        )
    except (ValueError, OverflowError):
        return None
    if first.year != second.year:
        return None
    return first.date()


def normalize_date(value: str | None, *, dayfirst: bool = True) -> str:
    """Return ``value`` as ``YYYY-MM-DD``, or unchanged when it is not a date.

    ``dayfirst`` only matters for ambiguous slash dates such as ``03/04/2024``.
    The stored data set was imported day-first, so that stays the default.
    """

    if not value:
        return ""

    date_part = value.split(" ", 1)[0]
    if _ISO_DATE_RE.match(date_part):
        return date_part

    parsed: date | None
    if "/" in date_part:
        parts = date_part.split("/")
        if len(parts) != 3:
            return value
        parsed = _parse_slashed(parts, dayfirst=dayfirst)
    elif "-" in date_part:
        parts = date_part.split("-")
        if len(parts) != 3:
            return value
        parsed = _parse_dashed(parts, dayfirst=dayfirst)
    else:
        parsed = _parse_generic(date_part, dayfirst=dayfirst)

    if parsed is None:
        return value
    return parsed.isoformat()


__all__ = ["normalize_date"]
