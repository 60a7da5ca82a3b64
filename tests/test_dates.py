"""Tests for date normalization."""

from datetime import date, datetime, timedelta, timezone

import numpy as np
import pandas as pd
import pytest

from core.dates import from_day_serial, is_canonical, parse_or_today, parse_to_canonical


class TestCanonicalStrings:
    @pytest.mark.parametrize(
        "value",
        ["2024-01-01", "2024-02-29", "1999-12-31", "1500-06-15", "0001-01-01", "9999-12-31"],
    )
    def test_canonical_input_is_returned_unchanged(self, value: str) -> None:
        assert parse_to_canonical(value) == value

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        assert parse_to_canonical("  2024-03-04 \n") == "2024-03-04"

    @pytest.mark.parametrize("value", ["2024-02-30", "2023-02-29", "2024-13-01"])
    def test_impossible_calendar_dates_are_rejected(self, value: str) -> None:
        assert parse_to_canonical(value) is None

    def test_is_canonical(self) -> None:
        assert is_canonical("2024-02-29")
        assert not is_canonical("2024-2-29")
        assert not is_canonical("2023-02-29")
        assert not is_canonical(20240229)


class TestDaySerials:
    def test_epoch(self) -> None:
        assert parse_to_canonical(0) == "1899-12-30"
        assert parse_to_canonical(1) == "1899-12-31"

    def test_modern_serial(self) -> None:
        assert parse_to_canonical(45292) == "2024-01-01"

    def test_fraction_is_time_of_day(self) -> None:
        assert parse_to_canonical(1.75) == "1899-12-31"
        assert parse_to_canonical(-0.5) == "1899-12-29"

    def test_numpy_numbers(self) -> None:
        assert parse_to_canonical(np.int64(2)) == "1900-01-01"
        assert parse_to_canonical(np.float64(45292.0)) == "2024-01-01"

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), -float("inf"), 1e20])
    def test_unusable_serials(self, value: float) -> None:
        assert parse_to_canonical(value) is None

    def test_booleans_are_not_serials(self) -> None:
        assert parse_to_canonical(True) is None

    def test_from_day_serial_rejects_text(self) -> None:
        assert from_day_serial("abc") is None


class TestNativeValues:
    def test_date(self) -> None:
        assert parse_to_canonical(date(2024, 3, 4)) == "2024-03-04"

    def test_naive_datetime_keeps_its_calendar_day(self) -> None:
        assert parse_to_canonical(datetime(2024, 3, 4, 23, 30)) == "2024-03-04"

    def test_aware_datetime_is_read_in_utc(self) -> None:
        value = datetime(2024, 3, 4, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

        assert parse_to_canonical(value) == "2024-03-05"

    def test_pandas_and_numpy_values(self) -> None:
        assert parse_to_canonical(pd.Timestamp("2024-03-04 10:00")) == "2024-03-04"
        assert parse_to_canonical(np.datetime64("2024-03-04")) == "2024-03-04"

    @pytest.mark.parametrize("value", [None, pd.NaT, np.datetime64("NaT"), pd.NA])
    def test_missing_values(self, value: object) -> None:
        assert parse_to_canonical(value) is None


class TestPatterns:
    def test_ambiguous_slash_date_prefers_day_first(self) -> None:
        assert parse_to_canonical("03/04/2024") == "2024-04-03"

    def test_ambiguous_dash_date_prefers_day_first(self) -> None:
        assert parse_to_canonical("03-04-2024") == "2024-04-03"

    def test_month_first_used_when_day_first_is_impossible(self) -> None:
        assert parse_to_canonical("12/31/2024") == "2024-12-31"
        assert parse_to_canonical("12-31-2024") == "2024-12-31"

    @pytest.mark.parametrize(
        "value",
        ["31-12-2024", "31/12/2024", "31.12.2024", "2024/12/31", "2024.12.31", "2024-12-31"],
    )
    def test_supported_layouts(self, value: str) -> None:
        assert parse_to_canonical(value) == "2024-12-31"

    def test_single_digit_parts(self) -> None:
        assert parse_to_canonical("2024-3-4") == "2024-03-04"
        assert parse_to_canonical("4.3.2024") == "2024-03-04"

    @pytest.mark.parametrize("value", ["31/02/2024", "13/13/2024", "00/01/2024"])
    def test_no_pattern_matches(self, value: str) -> None:
        assert parse_to_canonical(value) is None

    def test_format_hint_overrides_precedence(self) -> None:
        assert parse_to_canonical("03/04/2024", formats=["%m/%d/%Y"]) == "2024-03-04"

    def test_unmatched_format_hint_falls_back(self) -> None:
        assert parse_to_canonical("31.12.2024", formats=["%m/%d/%Y"]) == "2024-12-31"


class TestGenericText:
    def test_month_name(self) -> None:
        assert parse_to_canonical("March 4, 2024") == "2024-03-04"

    def test_iso_timestamp_with_utc_suffix(self) -> None:
        assert parse_to_canonical("2024-03-04T10:15:00Z") == "2024-03-04"

    def test_iso_timestamp_with_offset_is_read_in_utc(self) -> None:
        assert parse_to_canonical("2024-03-04T23:30:00-05:00") == "2024-03-05"

    @pytest.mark.parametrize("value", ["", "   ", "not a date", "45292", "now"])
    def test_unreadable_text(self, value: str) -> None:
        assert parse_to_canonical(value) is None


class TestKeywords:
    def test_today_and_yesterday_follow_the_timezone(self, frozen_now: datetime) -> None:
        assert parse_to_canonical("today", "Asia/Kolkata") == "2024-01-02"
        assert parse_to_canonical(" YESTERDAY ", "Asia/Kolkata") == "2024-01-01"
        assert parse_to_canonical("Today", "America/New_York") == "2024-01-01"
        assert parse_to_canonical("yesterday", "America/New_York") == "2023-12-31"

    def test_unknown_timezone_yields_none(self) -> None:
        assert parse_to_canonical("today", "Nowhere/Special") is None


class TestUnsupportedTypes:
    @pytest.mark.parametrize("value", [[2024, 1, 1], {"date": "2024-01-01"}, object()])
    def test_other_types(self, value: object) -> None:
        assert parse_to_canonical(value) is None


def test_parse_or_today_substitutes_today(frozen_now: datetime) -> None:
    assert parse_or_today("garbage", "Asia/Kolkata") == "2024-01-02"
    assert parse_or_today("2023-05-06", "Asia/Kolkata") == "2023-05-06"


class TestPartialDates:
    @pytest.mark.parametrize("value", ["2024", "2024-01", "01/2024", "March 2024", "March 4", "Jan"])
    def test_text_missing_year_month_or_day(self, value: str) -> None:
        assert parse_to_canonical(value) is None

    def test_full_text_date_still_parses(self) -> None:
        assert parse_to_canonical("4 March 2024") == "2024-03-04"
