"""Date helpers shared by the category and scoring code.

All helpers take an optional ``today`` so results are reproducible in tests.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[str, date, None]


def parse_date(value: DateLike) -> Optional[date]:
    """Parse a TMDB date (``YYYY-MM-DD``, optionally followed by a time part)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_release_date(value: Optional[str]) -> str:
    """Format a date for display, e.g. ``June 15, 2024``.

    Missing dates read as ``TBA``; unparseable ones are echoed unchanged.
    """
    if not value:
        return "TBA"
    parsed = parse_date(value)
    if parsed is None:
        return value
    return f"{calendar.month_name[parsed.month]} {parsed.day}, {parsed.year}"


def format_api_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def is_upcoming(value: DateLike, today: Optional[date] = None) -> bool:
    parsed = parse_date(value)
    if parsed is None:
        return False
    return parsed >= (today or date.today())


def days_until(value: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Whole days from today until the date; negative once it has passed."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return (parsed - (today or date.today())).days


def days_since(value: DateLike, today: Optional[date] = None) -> Optional[int]:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return ((today or date.today()) - parsed).days


def add_months(value: date, months: int) -> date:
    """Add calendar months to a date.

    A day past the end of the target month overflows into the following
    month (Aug 31 + 6 months is Mar 3), matching calendar-field arithmetic.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if value.day <= last_day:
        return value.replace(year=year, month=month)
    return date(year, month, last_day) + timedelta(days=value.day - last_day)
