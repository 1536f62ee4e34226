"""Unit tests for calendar arithmetic"""

import pytest
from datetime import date

from ledger_engine.domain.exceptions import ValidationError
from ledger_engine.utils.date_utils import add_months, days_between, parse_iso_date, step_date


def test_add_months_clamps_to_month_end():
    """Test Jan 31 + 1 month lands on the last day of February"""
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)  # leap year
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


def test_add_months_crosses_year_boundary():
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 12, 31), 1) == date(2025, 1, 31)


def test_step_date_day_frequencies():
    start = date(2024, 1, 1)
    assert step_date(start, "daily") == date(2024, 1, 2)
    assert step_date(start, "weekly", 2) == date(2024, 1, 15)
    assert step_date(start, "biweekly", 3) == date(2024, 2, 12)


def test_step_date_anchors_monthly_on_start():
    """Test monthly offsets are taken from the anchor, not chained"""
    anchor = date(2024, 1, 31)
    assert step_date(anchor, "monthly", 1) == date(2024, 2, 29)
    assert step_date(anchor, "monthly", 2) == date(2024, 3, 31)
    assert step_date(anchor, "quarterly", 1) == date(2024, 4, 30)


def test_step_date_unknown_frequency():
    with pytest.raises(ValidationError):
        step_date(date(2024, 1, 1), "yearly")


def test_parse_iso_date():
    assert parse_iso_date("2024-01-15") == date(2024, 1, 15)
    assert parse_iso_date(date(2024, 1, 15)) == date(2024, 1, 15)


@pytest.mark.parametrize("value", ["15/01/2024", "", None, 20240115])
def test_parse_iso_date_invalid(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_iso_date(value, "first_due_date")
    assert exc_info.value.field == "first_due_date"


def test_days_between():
    assert days_between(date(2024, 1, 1), date(2024, 1, 4)) == 3
    assert days_between(date(2024, 1, 4), date(2024, 1, 1)) == -3
