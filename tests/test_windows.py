"""Tests for the time window calculator."""

from datetime import date

import pytest

from expense_ledger.models import DateWindow
from expense_ledger.windows import (
    current_month,
    describe_window,
    format_relative_date,
    last_3_months,
    last_7_days,
    last_month,
    today,
    window_for_filter,
    yesterday,
)


REFERENCE = date(2026, 10, 19)


class TestWindows:
    """Window bounds from a reference date."""

    def test_today_and_yesterday(self):
        assert today(REFERENCE) == DateWindow(start=REFERENCE, end=REFERENCE)
        assert yesterday(REFERENCE) == DateWindow(start=date(2026, 10, 18), end=date(2026, 10, 18))

    def test_yesterday_crosses_year_boundary(self):
        window = yesterday(date(2027, 1, 1))
        assert window.start == date(2026, 12, 31)

    def test_current_month_runs_to_reference(self):
        window = current_month(REFERENCE)
        assert window.start == date(2026, 10, 1)
        assert window.end == REFERENCE
        assert window.days() == 19

    def test_last_month_is_full_calendar_month(self):
        window = last_month(REFERENCE)
        assert window.start == date(2026, 9, 1)
        assert window.end == date(2026, 9, 30)

    def test_last_month_in_january(self):
        window = last_month(date(2027, 1, 15))
        assert window.start == date(2026, 12, 1)
        assert window.end == date(2026, 12, 31)

    def test_last_7_days_has_seven_days(self):
        window = last_7_days(REFERENCE)
        assert window.start == date(2026, 10, 13)
        assert window.end == REFERENCE
        assert window.days() == 7

    def test_last_3_months_is_rolling(self):
        window = last_3_months(REFERENCE)
        assert window.start == date(2026, 7, 19)
        assert window.end == REFERENCE

    def test_last_3_months_clamps_day_of_month(self):
        # May 31 -> Feb 28
        window = last_3_months(date(2026, 5, 31))
        assert window.start == date(2026, 2, 28)

    def test_last_3_months_crosses_year(self):
        window = last_3_months(date(2027, 2, 10))
        assert window.start == date(2026, 11, 10)

    def test_defaults_to_local_today(self):
        assert today().start == date.today()


class TestWindowFilters:
    @pytest.mark.parametrize("name,expected_start", [
        ("today", date(2026, 10, 19)),
        ("yesterday", date(2026, 10, 18)),
        ("current-month", date(2026, 10, 1)),
        ("last-month", date(2026, 9, 1)),
        ("last-7-days", date(2026, 10, 13)),
        ("last-3-months", date(2026, 7, 19)),
    ])
    def test_named_filters(self, name, expected_start):
        assert window_for_filter(name, REFERENCE).start == expected_start

    def test_all_is_unbounded(self):
        assert window_for_filter("all", REFERENCE) is None

    def test_unknown_filter(self):
        with pytest.raises(ValueError):
            window_for_filter("next-week", REFERENCE)


class TestDescriptions:
    def test_describe_window(self):
        assert describe_window(None) == "all time"
        assert describe_window(today(REFERENCE)) == "on 19 Oct 2026"
        assert describe_window(current_month(REFERENCE)) == "in October 2026"
        assert describe_window(last_3_months(REFERENCE)) == "from 19 Jul to 19 Oct 2026"

    def test_format_relative_date(self):
        assert format_relative_date(REFERENCE, REFERENCE) == "Today"
        assert format_relative_date(date(2026, 10, 18), REFERENCE) == "Yesterday"
        assert format_relative_date(date(2026, 10, 5), REFERENCE) == "Oct 5, 2026"
