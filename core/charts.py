from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

REVENUE_FORMAT = ",.2f"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def daily_trend_chart(daily: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Quantity (left axis) and revenue (right axis) lines per day."""
    if not daily:
        return None
    df = pd.DataFrame(daily)
    base = alt.Chart(df).encode(x=alt.X("date:T", title="Date", axis=alt.Axis(format="%Y-%m-%d", grid=False)))
    hover = alt.selection_point(fields=["date"], on="mouseover", nearest=True, empty=False)
    quantity = base.mark_line(color="#1f2937", strokeWidth=2).encode(
        y=alt.Y("quantity:Q", title="Quantity", axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
        tooltip=[alt.Tooltip("date:T", title="Date", format="%Y-%m-%d"), alt.Tooltip("quantity:Q", title="Quantity")],
    )
    revenue = base.mark_line(color="#2563eb", strokeWidth=2).encode(
        y=alt.Y("revenue:Q", title="Revenue", axis=alt.Axis(format=REVENUE_FORMAT, orient="right")),
        tooltip=[
            alt.Tooltip("date:T", title="Date", format="%Y-%m-%d"),
            alt.Tooltip("revenue:Q", title="Revenue", format=REVENUE_FORMAT),
        ],
    )
    points = base.mark_point(opacity=0).encode(y="quantity:Q").add_params(hover)
    return to_vega_spec(alt.layer(quantity, revenue, points).resolve_scale(y="independent"))


def category_series_chart(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    hover = alt.selection_point(fields=["category"], on="mouseover", empty="all")
    bar = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("category:N", title="Product", sort="-y", axis=alt.Axis(grid=False)),
            y=alt.Y("revenue:Q", axis=alt.Axis(format=REVENUE_FORMAT, gridDash=[4, 4], domain=False, ticks=False)),
            color="category:N",
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("category", title="Product"),
                alt.Tooltip("quantity:Q", title="Quantity"),
                alt.Tooltip("revenue:Q", title="Revenue", format=REVENUE_FORMAT),
            ],
        )
        .add_params(hover)
    )
    return to_vega_spec(bar)


def share_chart(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    arc = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("revenue:Q", stack=True),
            color=alt.Color("category:N", title="Product"),
            tooltip=[
                alt.Tooltip("category", title="Product"),
                alt.Tooltip("revenue:Q", title="Revenue", format=REVENUE_FORMAT),
                alt.Tooltip("share:Q", title="Share %", format=".1f"),
            ],
        )
    )
    return to_vega_spec(arc)
