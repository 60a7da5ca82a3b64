from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from core.clock import DEFAULT_TIMEZONE
from core.filters import SERIES_TOP_N, SHARE_TOP_N


class ReportFiltersModel(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None
    preset: Optional[str] = None
    all_dates: bool = False
    category: Optional[str] = None
    zoom_pivot: Optional[str] = None
    series_top_n: int = SERIES_TOP_N
    share_top_n: int = SHARE_TOP_N
    timezone: str = DEFAULT_TIMEZONE


class ParseDateRequest(BaseModel):
    value: Optional[str | float | int] = None
    timezone: str = DEFAULT_TIMEZONE
    formats: List[str] = Field(default_factory=list)


class ParseDateResponse(BaseModel):
    value: Optional[str | float | int] = None
    canonical: Optional[str] = None
