from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from core.clock import DEFAULT_TIMEZONE, first_of_month, relative_day, resolve_timezone, today
from core.dates import parse_to_canonical


SERIES_TOP_N = 15
SHARE_TOP_N = 10
ZOOM_HALF_WIDTH_DAYS = 3


@dataclass(frozen=True)
class DateRange:
    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_empty(self) -> bool:
        return self.is_bounded and self.start > self.end  # type: ignore[operator]

    def span_days(self) -> Optional[int]:
        """Inclusive number of calendar days, 0 for an empty range, None when unbounded."""
        if not self.is_bounded:
            return None
        days = (date.fromisoformat(self.end) - date.fromisoformat(self.start)).days + 1  # type: ignore[arg-type]
        return max(0, days)

    def contains(self, day: str) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


@dataclass(frozen=True)
class ReportFilters:
    date_range: DateRange = field(default_factory=DateRange)
    category: Optional[str] = None
    zoom: Optional[DateRange] = None
    series_top_n: int = SERIES_TOP_N
    share_top_n: int = SHARE_TOP_N
    timezone: str = DEFAULT_TIMEZONE


def zoom_window(pivot: object, tz: str = DEFAULT_TIMEZONE) -> Optional[DateRange]:
    """Seven-day window centred on `pivot`: three days either side, inclusive."""
    day = parse_to_canonical(pivot, tz)
    if day is None:
        return None
    center = date.fromisoformat(day)
    try:
        start = center - timedelta(days=ZOOM_HALF_WIDTH_DAYS)
        end = center + timedelta(days=ZOOM_HALF_WIDTH_DAYS)
    except OverflowError:
        return None
    return DateRange(start.isoformat(), end.isoformat())


PRESETS = ("today", "yesterday", "last_7_days", "this_month")


def preset_range(name: str, tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> DateRange:
    key = (name or "").strip().lower()
    if key == "today":
        day = today(tz, now)
        return DateRange(day, day)
    if key == "yesterday":
        day = relative_day(-1, tz, now)
        return DateRange(day, day)
    if key == "last_7_days":
        return DateRange(relative_day(-6, tz, now), today(tz, now))
    if key == "this_month":
        return DateRange(first_of_month(tz, now), today(tz, now))
    raise ValueError(f"Unknown range preset: {name!r}")


def default_range(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> DateRange:
    return preset_range("last_7_days", tz, now)


def all_presets(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> Dict[str, DateRange]:
    return {name: preset_range(name, tz, now) for name in PRESETS}


def _as_top_n(value: object, default: int) -> int:
    try:
        n = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return max(1, min(200, n))


def normalize_filters(raw: dict, *, now: Optional[datetime] = None) -> ReportFilters:
    """Build ``ReportFilters`` from an untrusted dict (API body or query state).

    Missing or unreadable bounds fall back to the last seven days in the
    requested timezone unless ``all_dates`` is set. A ``preset`` name wins over
    explicit ``start``/``end``. Unknown timezones and presets raise ValueError.
    """
    tz = (raw.get("timezone") or DEFAULT_TIMEZONE).strip()
    resolve_timezone(tz)

    preset = (raw.get("preset") or "").strip()
    start = parse_to_canonical(raw.get("start"), tz)
    end = parse_to_canonical(raw.get("end"), tz)
    if preset:
        date_range = preset_range(preset, tz, now)
    elif start is None and end is None and not raw.get("all_dates"):
        date_range = default_range(tz, now)
    else:
        date_range = DateRange(start, end)

    category = (raw.get("category") or "").strip() or None

    zoom = zoom_window(raw.get("zoom_pivot"), tz)

    return ReportFilters(
        date_range=date_range,
        category=category,
        zoom=zoom,
        series_top_n=_as_top_n(raw.get("series_top_n", SERIES_TOP_N), SERIES_TOP_N),
        share_top_n=_as_top_n(raw.get("share_top_n", SHARE_TOP_N), SHARE_TOP_N),
        timezone=tz,
    )
