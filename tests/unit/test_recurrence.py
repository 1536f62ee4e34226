"""Unit tests for the recurrence engine"""

import pytest
from datetime import date

from ledger_engine.domain.exceptions import ValidationError
from ledger_engine.domain.models import RecurrenceFrequency, RecurrenceRule
from ledger_engine.domain.recurrence import (
    days_until,
    describe,
    generate_occurrences,
    is_reminder_due,
    next_occurrence,
    occurrences_between,
)


@pytest.mark.parametrize(
    "frequency, expected",
    [
        ("daily", date(2024, 1, 31)),
        ("weekly", date(2024, 2, 6)),
        ("biweekly", date(2024, 2, 13)),
        ("monthly", date(2024, 2, 29)),
    ],
)
def test_next_occurrence(frequency, expected):
    assert next_occurrence(date(2024, 1, 30), frequency) == expected


def test_next_occurrence_rejects_quarterly():
    """Test quarterly is an installment frequency only"""
    with pytest.raises(ValidationError):
        next_occurrence(date(2024, 1, 30), "quarterly")


def test_generate_occurrences_weekly_until_end_date():
    """Test end date is inclusive and bounds the sequence"""
    rule = RecurrenceRule(
        start_date=date(2024, 1, 1),
        frequency=RecurrenceFrequency.WEEKLY,
        end_date=date(2024, 1, 22),
    )

    assert list(generate_occurrences(rule, 100)) == [
        date(2024, 1, 1),
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
    ]


def test_generate_occurrences_monthly_month_end():
    """Test rule on the 31st clamps in February and returns to the 31st"""
    rule = RecurrenceRule(start_date=date(2024, 1, 31), frequency=RecurrenceFrequency.MONTHLY)

    assert list(generate_occurrences(rule, 3)) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
    ]


def test_generate_occurrences_respects_max_count():
    rule = RecurrenceRule(start_date=date(2024, 1, 1), frequency=RecurrenceFrequency.DAILY)

    occurrences = list(generate_occurrences(rule, 5))

    assert len(occurrences) == 5
    assert occurrences[-1] == date(2024, 1, 5)


def test_generate_occurrences_strictly_increasing():
    rule = RecurrenceRule(
        start_date=date(2024, 1, 29),
        frequency=RecurrenceFrequency.MONTHLY,
        end_date=date(2025, 1, 1),
    )

    occurrences = list(generate_occurrences(rule, 50))

    assert all(a < b for a, b in zip(occurrences, occurrences[1:]))
    assert occurrences[-1] <= rule.end_date
    assert len(occurrences) == 12


def test_generate_occurrences_end_before_start():
    """Test degenerate rule yields only the start date"""
    rule = RecurrenceRule(
        start_date=date(2024, 5, 1),
        frequency=RecurrenceFrequency.WEEKLY,
        end_date=date(2024, 4, 1),
    )

    assert list(generate_occurrences(rule, 10)) == [date(2024, 5, 1)]


def test_generate_occurrences_one_time_rule():
    rule = RecurrenceRule(start_date=date(2024, 5, 1))
    assert list(generate_occurrences(rule, 10)) == [date(2024, 5, 1)]


def test_generate_occurrences_is_lazy_and_restartable():
    rule = RecurrenceRule(start_date=date(2024, 1, 1), frequency=RecurrenceFrequency.WEEKLY)

    first = generate_occurrences(rule, 4)
    assert next(first) == date(2024, 1, 1)

    # A second call starts over regardless of the first generator's progress
    assert list(generate_occurrences(rule, 4)) == list(generate_occurrences(rule, 4))
    assert list(first) == [date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]


@pytest.mark.parametrize("max_count", [0, -1])
def test_generate_occurrences_invalid_max_count(max_count):
    rule = RecurrenceRule(start_date=date(2024, 1, 1), frequency=RecurrenceFrequency.WEEKLY)
    with pytest.raises(ValidationError):
        generate_occurrences(rule, max_count)


def test_describe():
    assert describe(RecurrenceRule(start_date=date(2024, 1, 1))) == "One time task"
    assert (
        describe(RecurrenceRule(date(2024, 1, 1), RecurrenceFrequency.WEEKLY, date(2024, 12, 31)))
        == "Repeats weekly until 2024-12-31"
    )
    assert (
        describe(RecurrenceRule(date(2024, 1, 1), RecurrenceFrequency.MONTHLY))
        == "Repeats monthly (no end date)"
    )
    assert (
        describe(RecurrenceRule(date(2024, 1, 1), RecurrenceFrequency.BIWEEKLY))
        == "Repeats every two weeks (no end date)"
    )


def test_occurrences_between_skips_existing():
    rule = RecurrenceRule(start_date=date(2024, 1, 1), frequency=RecurrenceFrequency.WEEKLY)

    dates = occurrences_between(
        rule,
        window_start=date(2024, 1, 10),
        window_end=date(2024, 2, 10),
        existing=[date(2024, 1, 22)],
    )

    assert dates == [date(2024, 1, 15), date(2024, 1, 29), date(2024, 2, 5)]


def test_occurrences_between_respects_limit_and_end_date():
    rule = RecurrenceRule(
        start_date=date(2024, 1, 1),
        frequency=RecurrenceFrequency.DAILY,
        end_date=date(2024, 1, 20),
    )

    assert len(occurrences_between(rule, date(2024, 1, 1), date(2024, 3, 1), limit=12)) == 12
    assert occurrences_between(rule, date(2024, 1, 18), date(2024, 3, 1))[-1] == date(2024, 1, 20)


def test_occurrences_between_one_time_rule():
    rule = RecurrenceRule(start_date=date(2024, 1, 5))
    assert occurrences_between(rule, date(2024, 1, 1), date(2024, 1, 31)) == [date(2024, 1, 5)]
    assert occurrences_between(rule, date(2024, 1, 6), date(2024, 1, 31)) == []


def test_reminder_helpers():
    assert days_until(date(2024, 1, 10), date(2024, 1, 7)) == 3
    assert is_reminder_due(date(2024, 1, 10), date(2024, 1, 7), 3)
    assert not is_reminder_due(date(2024, 1, 10), date(2024, 1, 8), 3)
