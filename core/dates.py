from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from dateutil import parser as date_parser

from core.clock import DEFAULT_TIMEZONE, relative_day, today


# Spreadsheet day-serial epoch; absorbs the 1900 leap-year quirk of that format.
DAY_SERIAL_EPOCH = date(1899, 12, 30)

# Tried in this order; day-before-month wins for ambiguous strings like 03/04/2024.
DATE_PATTERNS = (
    "%Y-%m-%d",
    "%d-%m-%Y",
    "%m-%d-%Y",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
)

_CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NUMERIC_DMY_RE = re.compile(r"^\d{1,2}[-/.]\d{1,2}[-/.]\d{1,4}$")
_NUMERIC_YMD_RE = re.compile(r"^\d{1,4}[-/.]\d{1,2}[-/.]\d{1,2}$")
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))
_DIGITS_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")


def is_canonical(value: object) -> bool:
    """True iff ``value`` is a zero-padded ``YYYY-MM-DD`` string naming a real day."""
    if not isinstance(value, str) or not _CANONICAL_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _from_native(value: datetime | date) -> Optional[str]:
    if isinstance(value, datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def from_day_serial(serial: object) -> Optional[str]:
    """Day-serial -> CanonicalDate; 0 is 1899-12-30 and any fraction is a time of day."""
    try:
        days = float(serial)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(days):
        return None
    try:
        return (DAY_SERIAL_EPOCH + timedelta(days=math.floor(days))).isoformat()
    except OverflowError:
        return None


def _strptime_date(text: str, pattern: str) -> Optional[str]:
    try:
        return datetime.strptime(text, pattern).date().isoformat()
    except ValueError:
        return None


def _generic_parse(text: str) -> Optional[str]:
    # Bare numbers and all-numeric day/month/year forms are left to DATE_PATTERNS.
    if _DIGITS_RE.match(text) or _NUMERIC_DMY_RE.match(text) or _NUMERIC_YMD_RE.match(text):
        return None
    # Parsing against two different defaults exposes any year, month or day
    # the text did not supply; partial dates such as "2024-01" are rejected.
    try:
        first = date_parser.parse(text, default=_FILL_DEFAULTS[0])
        second = date_parser.parse(text, default=_FILL_DEFAULTS[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return _from_native(first)


def _parse_string(text: str, tz: str, formats: Optional[Iterable[str]]) -> Optional[str]:
    trimmed = text.strip()
    if not trimmed:
        return None

    lowered = trimmed.lower()
    if lowered == "today":
        return today(tz)
    if lowered == "yesterday":
        return relative_day(-1, tz)

    if is_canonical(trimmed):
        return trimmed

    for pattern in formats or ():
        hit = _strptime_date(trimmed, pattern)
        if hit is not None:
            return hit

    generic = _generic_parse(trimmed)
    if generic is not None:
        return generic

    for pattern in DATE_PATTERNS:
        hit = _strptime_date(trimmed, pattern)
        if hit is not None:
            return hit
    return None


def parse_to_canonical(
    value: object,
    tz: str = DEFAULT_TIMEZONE,
    formats: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """Normalize a date-like value to ``YYYY-MM-DD``; ``None`` when it cannot be read.

    Accepts native date/datetime values (aware values are read in UTC), numeric
    spreadsheet day-serials, and strings. Strings may be the keywords ``today``
    or ``yesterday`` (resolved in ``tz``), fully qualified date/time text, or
    one of ``DATE_PATTERNS``. ``formats`` are strptime patterns tried ahead of
    the fixed list when the caller knows the source layout.
    """
    if _is_missing(value):
        return None
    try:
        if isinstance(value, (datetime, date)):
            return _from_native(value)
        if isinstance(value, np.datetime64):
            return _from_native(pd.Timestamp(value).to_pydatetime())
        if isinstance(value, bool):
            return None
        if isinstance(value, numbers.Real):
            return from_day_serial(value)
        if isinstance(value, str):
            return _parse_string(value, tz, formats)
    except (ValueError, OverflowError, pd.errors.OutOfBoundsDatetime):
        return None
    return None


def parse_or_today(value: object, tz: str = DEFAULT_TIMEZONE) -> str:
    """Caller-side fallback used by ingestion: unreadable dates become today in ``tz``."""
    return parse_to_canonical(value, tz) or today(tz)
