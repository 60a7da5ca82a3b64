from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from core.clock import DEFAULT_TIMEZONE
from core.data import Record, round_half_up
from core.filters import DateRange, ReportFilters, zoom_window


# Densifying longer spans is skipped; only dates with data are returned.
MAX_FILL_DAYS = 365


@dataclass(frozen=True)
class DailyBucket:
    date: str
    quantity: float
    revenue: float


@dataclass(frozen=True)
class CategoryBucket:
    category: str
    quantity: float
    revenue: float
    last_date: str


@dataclass(frozen=True)
class Totals:
    quantity: float
    revenue: float
    record_count: int


def effective_range(date_range: DateRange, zoom: Optional[DateRange] = None) -> DateRange:
    return zoom if zoom is not None else date_range


def _category_key(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    key = category.strip().lower()
    return key or None


def filter_records(
    records: Iterable[Record],
    date_range: DateRange,
    category: Optional[str] = None,
    zoom: Optional[DateRange] = None,
) -> List[Record]:
    """Records inside the effective range (inclusive) whose category matches case-insensitively."""
    window = effective_range(date_range, zoom)
    if window.is_empty:
        return []
    wanted = _category_key(category)
    return [
        r
        for r in records
        if window.contains(r.date) and (wanted is None or r.category.lower() == wanted)
    ]


def _to_frame(records: Sequence[Record]) -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "category": [r.category for r in records],
            "quantity": [float(r.quantity) for r in records],
            "unit_price": [float(r.unit_price) for r in records],
            "date": [r.date for r in records],
        }
    )
    frame["revenue"] = frame["quantity"] * frame["unit_price"]
    return frame


def fill_daily_gaps(buckets: Sequence[DailyBucket], start: str, end: str) -> List[DailyBucket]:
    """One bucket per calendar day in ``[start, end]``; days without data are zero.

    Spans longer than ``MAX_FILL_DAYS`` (and empty spans) come back unchanged.
    """
    span = DateRange(start, end).span_days() or 0
    if span <= 0 or span > MAX_FILL_DAYS:
        return list(buckets)
    by_date = {b.date: b for b in buckets}
    days = pd.date_range(date.fromisoformat(start), date.fromisoformat(end), freq="D")
    filled: List[DailyBucket] = []
    for day in days:
        key = day.date().isoformat()
        filled.append(by_date.get(key) or DailyBucket(date=key, quantity=0.0, revenue=0.0))
    return filled


@lru_cache(maxsize=32)
def _aggregate_daily_cached(
    records: Tuple[Record, ...],
    date_range: DateRange,
    category: Optional[str],
    zoom: Optional[DateRange],
    fill_gaps: bool,
) -> Tuple[DailyBucket, ...]:
    passing = filter_records(records, date_range, category, zoom)
    buckets: List[DailyBucket] = []
    if passing:
        daily = (
            _to_frame(passing)
            .groupby("date", sort=True)[["quantity", "revenue"]]
            .sum()
            .reset_index()
        )
        buckets = [
            DailyBucket(date=str(row.date), quantity=float(row.quantity), revenue=float(row.revenue))
            for row in daily.itertuples(index=False)
        ]
    window = effective_range(date_range, zoom)
    if fill_gaps and window.is_bounded:
        buckets = fill_daily_gaps(buckets, window.start, window.end)  # type: ignore[arg-type]
    return tuple(buckets)


def aggregate_daily(
    records: Iterable[Record],
    date_range: DateRange,
    category: Optional[str] = None,
    zoom: Optional[DateRange] = None,
    *,
    fill_gaps: bool = True,
) -> List[DailyBucket]:
    """Quantity and revenue per day, ascending by date, gap-filled for bounded spans."""
    return list(_aggregate_daily_cached(tuple(records), date_range, _category_key(category), zoom, fill_gaps))


@lru_cache(maxsize=32)
def _aggregate_by_category_cached(
    records: Tuple[Record, ...],
    date_range: DateRange,
    category: Optional[str],
    zoom: Optional[DateRange],
) -> Tuple[CategoryBucket, ...]:
    passing = filter_records(records, date_range, category, zoom)
    if not passing:
        return ()
    grouped = (
        _to_frame(passing)
        .groupby("category", sort=False)
        .agg(quantity=("quantity", "sum"), revenue=("revenue", "sum"), last_date=("date", "max"))
        .reset_index()
        # mergesort is stable: equal revenue keeps first-seen order.
        .sort_values("revenue", ascending=False, kind="mergesort")
    )
    return tuple(
        CategoryBucket(
            category=str(row.category),
            quantity=float(row.quantity),
            revenue=float(row.revenue),
            last_date=str(row.last_date),
        )
        for row in grouped.itertuples(index=False)
    )


def aggregate_by_category(
    records: Iterable[Record],
    date_range: DateRange,
    category: Optional[str] = None,
    zoom: Optional[DateRange] = None,
) -> List[CategoryBucket]:
    """Per-category totals, highest revenue first; ties keep first-encountered order."""
    return list(_aggregate_by_category_cached(tuple(records), date_range, _category_key(category), zoom))


def top_categories(buckets: Sequence[CategoryBucket], n: int) -> List[CategoryBucket]:
    return list(buckets[: max(0, int(n))])


def category_share(bucket: CategoryBucket, total_revenue: float) -> float:
    """Percent of ``total_revenue`` to one decimal; 0 when the total is 0."""
    if not total_revenue:
        return 0.0
    return round_half_up(bucket.revenue / total_revenue * 100, 1) or 0.0


def average_unit_price(bucket: CategoryBucket) -> Optional[float]:
    if not bucket.quantity:
        return None
    return bucket.revenue / bucket.quantity


def compute_totals(records: Iterable[Record]) -> Totals:
    quantity = 0.0
    revenue = 0.0
    count = 0
    for r in records:
        quantity += r.quantity
        revenue += r.revenue
        count += 1
    return Totals(quantity=quantity, revenue=revenue, record_count=count)


def category_options(records: Iterable[Record]) -> List[str]:
    return sorted({r.category for r in records}, key=lambda c: (c.lower(), c))


def search_categories(records: Iterable[Record], query: str) -> List[str]:
    """Categories containing ``query`` (case-insensitive substring)."""
    q = (query or "").strip().lower()
    options = category_options(records)
    if not q:
        return options
    return [c for c in options if q in c.lower()]


def apply_zoom(filters: ReportFilters, pivot: object) -> ReportFilters:
    """Recentre on ``pivot``; the explicit range stays on the filters for ``clear_zoom``."""
    window = zoom_window(pivot, filters.timezone or DEFAULT_TIMEZONE)
    if window is None:
        return filters
    return replace(filters, zoom=window)


def clear_zoom(filters: ReportFilters) -> ReportFilters:
    return replace(filters, zoom=None)


def series_view(buckets: Sequence[CategoryBucket], n: int) -> List[Dict[str, object]]:
    return [
        {"category": b.category, "quantity": b.quantity, "revenue": b.revenue}
        for b in top_categories(buckets, n)
    ]


def share_view(buckets: Sequence[CategoryBucket], n: int) -> List[Dict[str, object]]:
    """Top ``n`` categories with their share of the whole filtered revenue."""
    total = sum(b.revenue for b in buckets)
    return [
        {"category": b.category, "revenue": b.revenue, "share": category_share(b, total)}
        for b in top_categories(buckets, n)
    ]
