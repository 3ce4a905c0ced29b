"""Reporting period helpers."""

import calendar
from datetime import date, datetime

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_period(month: int, year: int) -> tuple[date, date]:
    """Return the first and last calendar day of a month.

    Raises:
        ValueError: If month is not 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def parse_date(value: date | datetime | str) -> date:
    """Parse an ISO date (or datetime) string; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    return date.fromisoformat(value[:10])


def format_display_date(value: date | datetime | str) -> str:
    """Short chart label, e.g. ``Jan'24``."""
    d = parse_date(value)
    return f"{MONTH_ABBR[d.month - 1]}'{d.year % 100:02d}"


def format_period_label(start: date | str, end: date | str) -> str:
    """Human period label, e.g. ``2024-01-01 to 2024-01-31``."""
    return f"{parse_date(start).isoformat()} to {parse_date(end).isoformat()}"


def _shift_months(d: date, months: int) -> date:
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    day = min(d.day, calendar.monthrange(year, month + 1)[1])
    return date(year, month + 1, day)


def calculate_date_range(timeframe: str = "quarter", today: date | None = None) -> tuple[date, date]:
    """Date range ending today for a dashboard timeframe.

    quarter is 3 months back, year is 12, custom defaults to 6.
    Unknown timeframes give an empty range (start == end).
    """
    end = today or date.today()
    months = {"quarter": 3, "year": 12, "custom": 6}.get(timeframe)
    if months is None:
        return end, end
    return _shift_months(end, -months), end
