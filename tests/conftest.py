"""Pytest configuration shared across the suite."""

from datetime import datetime, timezone

import pytest

from core import clock
from core.data import Record


FIXED_NOW = datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    """Pin the clock to 2024-01-01 20:00 UTC (already 2024-01-02 in Asia/Kolkata)."""
    monkeypatch.setattr(clock, "_now_utc", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def sample_records() -> list[Record]:
    return [
        Record(category="Rice", quantity=2, unit_price=10.0, date="2024-01-03"),
        Record(category="Wheat", quantity=1, unit_price=40.0, date="2024-01-01"),
        Record(category="rice", quantity=3, unit_price=10.0, date="2024-01-04"),
        Record(category="Sugar", quantity=5, unit_price=8.0, date="2024-01-03"),
        Record(category="Rice", quantity=3, unit_price=10.0, date="2024-01-05"),
        Record(category="Dal", quantity=1, unit_price=120.0, date="2024-02-10"),
    ]
