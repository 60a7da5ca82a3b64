from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DEFAULT_TIMEZONE = os.environ.get("SALES_TIMEZONE", "Asia/Kolkata")


@lru_cache(maxsize=32)
def resolve_timezone(tz: str) -> ZoneInfo:
    """Look up an IANA zone, raising ValueError for unknown or blank names."""
    name = (tz or "").strip()
    if not name:
        raise ValueError("Timezone name is required")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {tz!r}") from exc


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def today_date(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    instant = now if now is not None else _now_utc()
    if instant.tzinfo is None:
        # Naive instants are taken as UTC, never as host-local time.
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(tz)).date()


def today(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> str:
    """Wall-clock calendar date of ``now`` (default: the current instant) in ``tz``."""
    return today_date(tz, now).isoformat()


def relative_day(offset_days: int, tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> str:
    """``today(tz)`` shifted by whole calendar days.

    The shift is done on the calendar date itself, so DST transitions in ``tz``
    cannot move the result by an hour into a neighbouring day.
    """
    try:
        return (today_date(tz, now) + timedelta(days=int(offset_days))).isoformat()
    except OverflowError as exc:
        raise ValueError(f"Day offset out of range: {offset_days}") from exc


def first_of_month(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> str:
    return today_date(tz, now).replace(day=1).isoformat()
