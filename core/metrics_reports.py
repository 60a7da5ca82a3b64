from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List

from core.aggregation import (
    aggregate_by_category,
    aggregate_daily,
    average_unit_price,
    category_options,
    category_share,
    compute_totals,
    effective_range,
    filter_records,
    series_view,
    share_view,
)
from core.charts import category_series_chart, daily_trend_chart, share_chart
from core.data import Record, format_currency, round_half_up
from core.filters import ReportFilters


def _category_table(filters: ReportFilters, records: Iterable[Record]) -> List[Dict[str, Any]]:
    buckets = aggregate_by_category(records, filters.date_range, filters.category, filters.zoom)
    total = sum(b.revenue for b in buckets)
    rows: List[Dict[str, Any]] = []
    for rank, bucket in enumerate(buckets, start=1):
        avg = average_unit_price(bucket)
        rows.append(
            {
                "rank": rank,
                **asdict(bucket),
                "share": category_share(bucket, total),
                "avg_unit_price": round_half_up(avg, 2) if avg is not None else None,
            }
        )
    return rows


def compute_daily(filters: ReportFilters, records: Iterable[Record]) -> Dict[str, Any]:
    daily = aggregate_daily(records, filters.date_range, filters.category, filters.zoom)
    rows = [asdict(b) for b in daily]
    return {
        "filters": asdict(filters),
        "effective_range": asdict(effective_range(filters.date_range, filters.zoom)),
        "daily": rows,
        "charts": {"daily": daily_trend_chart(rows)},
    }


def compute_categories(filters: ReportFilters, records: Iterable[Record]) -> Dict[str, Any]:
    records = tuple(records)
    buckets = aggregate_by_category(records, filters.date_range, filters.category, filters.zoom)
    series = series_view(buckets, filters.series_top_n)
    share = share_view(buckets, filters.share_top_n)
    return {
        "filters": asdict(filters),
        "effective_range": asdict(effective_range(filters.date_range, filters.zoom)),
        "categories": _category_table(filters, records),
        "series": series,
        "share": share,
        "charts": {"series": category_series_chart(series), "share": share_chart(share)},
    }


def compute_reports(filters: ReportFilters, records: Iterable[Record]) -> Dict[str, Any]:
    """Everything the reports page shows for one filter state."""
    records = tuple(records)
    window = effective_range(filters.date_range, filters.zoom)
    passing = filter_records(records, filters.date_range, filters.category, filters.zoom)
    detail = sorted(passing, key=lambda r: r.date, reverse=True)

    daily = compute_daily(filters, records)
    categories = compute_categories(filters, records)
    totals = compute_totals(passing)
    return {
        "filters": asdict(filters),
        "effective_range": asdict(window),
        "zoomed": filters.zoom is not None,
        "totals": asdict(totals),
        "options": category_options(records),
        "daily": daily["daily"],
        "categories": categories["categories"],
        "series": categories["series"],
        "share": categories["share"],
        "detail": [
            {
                **asdict(r),
                "revenue": r.revenue,
                "unit_price_display": format_currency(r.unit_price),
                "revenue_display": format_currency(r.revenue),
            }
            for r in detail
        ],
        "charts": {**daily["charts"], **categories["charts"]},
    }
