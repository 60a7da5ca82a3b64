from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import ParseDateRequest, ParseDateResponse, ReportFiltersModel
from core.aggregation import apply_zoom, category_options, clear_zoom, search_categories
from core.clock import DEFAULT_TIMEZONE, relative_day, today
from core.data import load_sales_data
from core.dates import parse_to_canonical
from core.filters import ReportFilters, all_presets, normalize_filters
from core.metrics_reports import compute_categories, compute_daily, compute_reports


app = FastAPI(title="Sales Reports API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: ReportFiltersModel) -> ReportFilters:
    return normalize_filters(model.model_dump())


def _records(tz: str = DEFAULT_TIMEZONE) -> tuple:
    return tuple(load_sales_data(tz=tz).get("records", ()) or ())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _run(name: str, compute: Callable[[], Any]) -> JSONResponse:
    try:
        return _json(compute())
    except ValueError as exc:
        logger.warning("%s rejected: %s", name, exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc, 500)


@app.get("/meta/categories")
def meta_categories(q: str = Query(default=""), tz: str = Query(default=DEFAULT_TIMEZONE)):
    def compute() -> Dict[str, Any]:
        records = _records(tz)
        values = search_categories(records, q) if q.strip() else category_options(records)
        return {"categories": values}

    return _run("meta_categories", compute)


@app.get("/meta/presets")
def meta_presets(tz: str = Query(default=DEFAULT_TIMEZONE)):
    return _run("meta_presets", lambda: {"timezone": tz, "presets": {k: asdict(v) for k, v in all_presets(tz).items()}})


@app.get("/dates/today")
def dates_today(tz: str = Query(default=DEFAULT_TIMEZONE), offset: int = Query(default=0)):
    return _run("dates_today", lambda: {"timezone": tz, "today": today(tz), "date": relative_day(offset, tz)})


@app.post("/dates/parse")
def dates_parse(body: ParseDateRequest):
    def compute() -> Dict[str, Any]:
        canonical = parse_to_canonical(body.value, body.timezone, body.formats or None)
        return ParseDateResponse(value=body.value, canonical=canonical).model_dump()

    return _run("dates_parse", compute)


@app.post("/reports")
def reports(filters: ReportFiltersModel):
    def compute() -> Dict[str, Any]:
        f = _filters_from_model(filters)
        return compute_reports(f, _records(f.timezone))

    return _run("reports", compute)


@app.post("/reports/daily")
def reports_daily(filters: ReportFiltersModel):
    def compute() -> Dict[str, Any]:
        f = _filters_from_model(filters)
        return compute_daily(f, _records(f.timezone))

    return _run("reports_daily", compute)


@app.post("/reports/categories")
def reports_categories(filters: ReportFiltersModel):
    def compute() -> Dict[str, Any]:
        f = _filters_from_model(filters)
        return compute_categories(f, _records(f.timezone))

    return _run("reports_categories", compute)


@app.post("/reports/zoom")
def reports_zoom(filters: ReportFiltersModel, pivot: Optional[str] = Query(default=None)):
    def compute() -> Dict[str, Any]:
        f = _filters_from_model(filters)
        f = apply_zoom(f, pivot) if pivot else clear_zoom(f)
        return compute_reports(f, _records(f.timezone))

    return _run("reports_zoom", compute)


@app.post("/export/{page}")
def export_page(page: str, filters: ReportFiltersModel):
    try:
        f = _filters_from_model(filters)
        records = _records(f.timezone)

        filename = f"{page}.csv"
        if page == "daily":
            export_df = pd.DataFrame(compute_daily(f, records)["daily"])
        elif page == "categories":
            export_df = pd.DataFrame(compute_categories(f, records)["categories"])
        elif page == "detail":
            export_df = pd.DataFrame(compute_reports(f, records)["detail"])
        else:
            export_df = pd.DataFrame()

        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    except ValueError as exc:
        logger.warning("export_page rejected: %s", exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("export_page failed")
        return _error(exc, 500)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
