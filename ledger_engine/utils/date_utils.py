"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta

from ledger_engine.domain.exceptions import ValidationError

# frequency value -> (days, months) per step
_FREQUENCY_STEPS = {
    "daily": (1, 0),
    "weekly": (7, 0),
    "biweekly": (14, 0),
    "monthly": (0, 1),
    "quarterly": (0, 3),
}


def parse_iso_date(value: date | str, field: str = "date") -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}", field=field) from e


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months, keeping the day of month and clamping to the last
    day of the target month (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def step_date(anchor: date, frequency: str, steps: int = 1) -> date:
    """
    Advance anchor by `steps` frequency periods.

    Monthly steps are computed from the anchor rather than chained, so a
    schedule anchored on the 31st returns to the 31st whenever the month
    has one.
    """
    try:
        days, months = _FREQUENCY_STEPS[getattr(frequency, "value", frequency)]
    except KeyError as e:
        raise ValidationError(f"Unsupported frequency: {frequency!r}", field="frequency") from e

    if months:
        return add_months(anchor, months * steps)
    return anchor + timedelta(days=days * steps)


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end"""
    return (end - start).days
