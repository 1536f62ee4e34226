"""Recurrence engine for recurring tasks and expenses"""

from datetime import date
from typing import Iterable, Iterator, List

from ledger_engine.domain.exceptions import ValidationError
from ledger_engine.domain.models import RecurrenceFrequency, RecurrenceRule
from ledger_engine.utils.date_utils import days_between, step_date

_FREQUENCY_TEXT = {
    RecurrenceFrequency.DAILY: "daily",
    RecurrenceFrequency.WEEKLY: "weekly",
    RecurrenceFrequency.BIWEEKLY: "every two weeks",
    RecurrenceFrequency.MONTHLY: "monthly",
}


def _parse_frequency(frequency) -> RecurrenceFrequency:
    try:
        return RecurrenceFrequency(frequency)
    except ValueError as e:
        raise ValidationError(f"Unsupported recurrence frequency: {frequency!r}", field="frequency") from e


def next_occurrence(from_date: date, frequency: RecurrenceFrequency | str) -> date:
    """One calendar step: +1d, +7d, +14d or +1 month (clamped to month-end)"""
    return step_date(from_date, _parse_frequency(frequency))


def generate_occurrences(rule: RecurrenceRule, max_count: int) -> Iterator[date]:
    """
    Lazily yield occurrence dates for a rule.

    - start_date is always the first element
    - stops after max_count dates, or before the first date past end_date
    - an end_date earlier than start_date yields start_date alone
    - monthly dates are offsets from start_date, so a rule on the 31st
      gives Jan 31, Feb 29, Mar 31 rather than drifting to the 29th

    Every call returns an independent generator.
    """
    if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count < 1:
        raise ValidationError("max_count must be an integer >= 1", field="max_count")
    frequency = _parse_frequency(rule.frequency) if rule.is_recurring else None
    return _occurrences(rule.start_date, frequency, rule.end_date, max_count)


def _occurrences(
    start_date: date,
    frequency: RecurrenceFrequency | None,
    end_date: date | None,
    max_count: int,
) -> Iterator[date]:
    yield start_date
    if frequency is None:
        return

    for index in range(1, max_count):
        candidate = step_date(start_date, frequency, index)
        if end_date is not None and candidate > end_date:
            return
        yield candidate


def describe(rule: RecurrenceRule) -> str:
    """Human-readable schedule, e.g. 'Repeats weekly until 2024-12-31'"""
    if not rule.is_recurring:
        return "One time task"

    schedule = f"Repeats {_FREQUENCY_TEXT[_parse_frequency(rule.frequency)]}"
    if rule.end_date is not None:
        return f"{schedule} until {rule.end_date.isoformat()}"
    return f"{schedule} (no end date)"


def occurrences_between(
    rule: RecurrenceRule,
    window_start: date,
    window_end: date,
    existing: Iterable[date] = (),
    limit: int = 12,
) -> List[date]:
    """
    Occurrences inside [window_start, window_end] not already materialized.

    Used by the recurring-expense job to create pending occurrences ahead
    of time. At most `limit` new dates are returned.
    """
    if limit < 1:
        return []
    seen = set(existing)
    frequency = _parse_frequency(rule.frequency) if rule.is_recurring else None

    result: List[date] = []
    index = 0
    while len(result) < limit:
        candidate = rule.start_date if index == 0 else step_date(rule.start_date, frequency, index)
        if candidate > window_end or (rule.end_date is not None and candidate > rule.end_date):
            break
        if candidate >= window_start and candidate not in seen:
            result.append(candidate)
        if frequency is None:
            break
        index += 1
    return result


def days_until(target: date, as_of: date) -> int:
    return days_between(as_of, target)


def is_reminder_due(next_date: date, as_of: date, reminder_days: int) -> bool:
    """Reminders fire once, on the day exactly reminder_days before the occurrence"""
    return days_until(next_date, as_of) == reminder_days
