"""
Time Window Calculator

Pure functions from a reference date to a closed DateWindow [start, end].
The reference date is the caller's local calendar date; it defaults to
date.today(). Bounds are calendar dates, so no time-of-day or timezone
arithmetic leaks into aggregation queries.
"""

import calendar
from datetime import date, timedelta
from typing import Optional

from expense_ledger.models.ledger import DateWindow


def _reference(reference: Optional[date]) -> date:
    return reference or date.today()


def _shift_months(day: date, months: int) -> date:
    """Same day-of-month `months` away, clamped to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def today(reference: Optional[date] = None) -> DateWindow:
    ref = _reference(reference)
    return DateWindow(start=ref, end=ref)


def yesterday(reference: Optional[date] = None) -> DateWindow:
    day = _reference(reference) - timedelta(days=1)
    return DateWindow(start=day, end=day)


def current_month(reference: Optional[date] = None) -> DateWindow:
    """First day of the reference month through the reference date."""
    ref = _reference(reference)
    return DateWindow(start=ref.replace(day=1), end=ref)


def last_month(reference: Optional[date] = None) -> DateWindow:
    """The full previous calendar month (December of last year in January)."""
    ref = _reference(reference)
    end = ref.replace(day=1) - timedelta(days=1)
    return DateWindow(start=end.replace(day=1), end=end)


def last_7_days(reference: Optional[date] = None) -> DateWindow:
    """Rolling 7 days ending on the reference date (both included)."""
    ref = _reference(reference)
    return DateWindow(start=ref - timedelta(days=6), end=ref)


def last_3_months(reference: Optional[date] = None) -> DateWindow:
    """Rolling three months ending on the reference date, not calendar-aligned."""
    ref = _reference(reference)
    return DateWindow(start=_shift_months(ref, -3), end=ref)


WINDOW_FILTERS = {
    "today": today,
    "yesterday": yesterday,
    "current-month": current_month,
    "last-month": last_month,
    "last-7-days": last_7_days,
    "last-3-months": last_3_months,
}


def window_for_filter(name: str, reference: Optional[date] = None) -> Optional[DateWindow]:
    """
    Resolve a named date filter.

    Returns None for "all" (no date bound).

    Raises:
        ValueError: For an unknown filter name
    """
    if name == "all":
        return None
    try:
        factory = WINDOW_FILTERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown date filter: {name}. "
            f"Allowed: {', '.join(list(WINDOW_FILTERS) + ['all'])}"
        )
    return factory(reference)


def describe_window(window: Optional[DateWindow]) -> str:
    """Human-readable description of a window."""
    if window is None:
        return "all time"

    start, end = window.start, window.end
    if start == end:
        return f"on {start.strftime('%d %b %Y')}"
    elif start.month == end.month and start.year == end.year:
        return f"in {start.strftime('%B %Y')}"
    elif start.year == end.year:
        return f"from {start.strftime('%d %b')} to {end.strftime('%d %b %Y')}"
    else:
        return f"from {start.strftime('%d %b %Y')} to {end.strftime('%d %b %Y')}"


def format_relative_date(day: date, reference: Optional[date] = None) -> str:
    """'Today', 'Yesterday', or e.g. 'Oct 5, 2026'."""
    ref = _reference(reference)
    if day == ref:
        return "Today"
    if day == ref - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%b')} {day.day}, {day.year}"
