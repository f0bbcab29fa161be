"""Tests for date key utilities."""

from datetime import date, datetime, timedelta, timezone

from finledger.engine.dates import (
    add_months_clamped,
    clamp_to_month,
    key_in_month,
    month_bounds,
    shift_month,
    to_local_date_key,
    week_bounds,
)


class TestDateKeys:
    """Tests for local-calendar date keys."""

    def test_date_is_formatted_zero_padded(self):
        assert to_local_date_key(date(2024, 3, 5)) == "2024-03-05"

    def test_naive_datetime_is_taken_as_local(self):
        assert to_local_date_key(datetime(2024, 1, 31, 23, 30)) == "2024-01-31"

    def test_aware_datetime_uses_local_calendar(self):
        """An aware timestamp is converted to local time before formatting."""
        moment = datetime(2024, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-3)))
        expected = moment.astimezone().date().isoformat()
        assert to_local_date_key(moment) == expected

    def test_keys_sort_like_dates(self):
        keys = ["2024-10-01", "2024-02-29", "2023-12-31"]
        assert sorted(keys) == ["2023-12-31", "2024-02-29", "2024-10-01"]


class TestMonthArithmetic:
    """Tests for month shifting and end-of-month clamping."""

    def test_jan_31_plus_one_month_is_feb_29_in_leap_year(self):
        assert add_months_clamped(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_jan_31_plus_one_month_is_feb_28_otherwise(self):
        assert add_months_clamped(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_shift_month_rolls_year(self):
        assert shift_month(2024, 12, 1) == (2025, 1)
        assert shift_month(2024, 1, -1) == (2023, 12)
        assert shift_month(2024, 11, 14) == (2026, 1)

    def test_clamp_keeps_valid_day(self):
        assert clamp_to_month(2024, 4, 15) == date(2024, 4, 15)
        assert clamp_to_month(2024, 4, 31) == date(2024, 4, 30)

    def test_month_bounds(self):
        assert month_bounds(2024, 2) == ("2024-02-01", "2024-02-29")
        assert month_bounds(2023, 12) == ("2023-12-01", "2023-12-31")

    def test_week_is_monday_to_sunday(self):
        # 2024-03-17 is a Sunday
        start, end = week_bounds(date(2024, 3, 17))
        assert start == date(2024, 3, 11)
        assert end == date(2024, 3, 17)

    def test_key_in_month(self):
        assert key_in_month("2024-03-31", 2024, 3)
        assert not key_in_month("2024-04-01", 2024, 3)
