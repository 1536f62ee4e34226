"""Installment plan generation and tracking"""

import dataclasses
from datetime import date
from typing import Tuple

from ledger_engine.domain import ledger
from ledger_engine.domain.exceptions import (
    AlreadyPaidError,
    NotFoundError,
    PlanLockedError,
    ValidationError,
)
from ledger_engine.domain.models import (
    Installment,
    InstallmentFrequency,
    InstallmentPlan,
    InstallmentStatus,
    LedgerEntity,
)
from ledger_engine.utils.date_utils import days_between, parse_iso_date, step_date
from ledger_engine.utils.money import ensure_amount, split_evenly


def _parse_frequency(frequency) -> InstallmentFrequency:
    try:
        return InstallmentFrequency(frequency)
    except ValueError as e:
        raise ValidationError(f"Unsupported installment frequency: {frequency!r}", field="frequency") from e


def _build_schedule(
    total_amount: int,
    total_installments: int,
    frequency: InstallmentFrequency,
    first_due_date: date,
) -> Tuple[Installment, ...]:
    amounts = split_evenly(total_amount, total_installments)
    return tuple(
        Installment(
            number=i + 1,
            amount=amount,
            due_date=step_date(first_due_date, frequency, i),
        )
        for i, amount in enumerate(amounts)
    )


def create_plan(
    total_amount: int,
    total_installments: int,
    frequency: InstallmentFrequency | str,
    first_due_date: date,
) -> InstallmentPlan:
    """
    Split total_amount into dated installments.

    Requirements:
    - Equal installments rounded down to the minor unit
    - Last installment absorbs the remainder so the sum is exact
    - Due date i is first_due_date advanced by i frequency steps
      (weekly +7d, biweekly +14d, monthly +1 month, quarterly +3 months,
      month-end clamped)

    Raises:
        ValidationError: total_amount <= 0 or total_installments < 1

    Example:
        100000 over 3 monthly from 2024-01-15 ->
        [33333 @ 01-15, 33333 @ 02-15, 33334 @ 03-15]
    """
    total_amount = ensure_amount(total_amount, "total_amount", allow_zero=False)
    if isinstance(total_installments, bool) or not isinstance(total_installments, int) or total_installments < 1:
        raise ValidationError("total_installments must be an integer >= 1", field="total_installments")
    frequency = _parse_frequency(frequency)
    first_due_date = parse_iso_date(first_due_date, "first_due_date")

    return InstallmentPlan(
        total_amount=total_amount,
        total_installments=total_installments,
        frequency=frequency,
        first_due_date=first_due_date,
        installments=_build_schedule(total_amount, total_installments, frequency, first_due_date),
    )


def create_plan_for_entity(
    entity: LedgerEntity,
    total_installments: int,
    frequency: InstallmentFrequency | str,
    first_due_date: date,
) -> InstallmentPlan:
    """Plan the entity's outstanding balance, not its gross total"""
    balance = ledger.recompute(entity).balance
    if balance <= 0:
        raise ValidationError(f"{entity.kind.value} {entity.id} has no outstanding balance", field="balance")
    return create_plan(balance, total_installments, frequency, first_due_date)


def regenerate_plan(
    plan: InstallmentPlan,
    total_amount: int | None = None,
    total_installments: int | None = None,
    frequency: InstallmentFrequency | str | None = None,
    first_due_date: date | None = None,
) -> InstallmentPlan:
    """
    Rebuild the schedule with edited parameters.

    Only allowed while no installment has been paid.
    """
    if plan.has_payments:
        raise PlanLockedError("Installment plan cannot be edited after a payment has been recorded")

    return create_plan(
        total_amount if total_amount is not None else plan.total_amount,
        total_installments if total_installments is not None else plan.total_installments,
        frequency if frequency is not None else plan.frequency,
        first_due_date if first_due_date is not None else plan.first_due_date,
    )


def record_payment(plan: InstallmentPlan, installment_number: int, payment_ref: str) -> InstallmentPlan:
    """
    Mark one installment paid and attach the payment reference.

    Raises:
        NotFoundError: no installment with that number
        AlreadyPaidError: installment already paid (re-application is
            rejected so double payments surface)
    """
    for index, inst in enumerate(plan.installments):
        if inst.number == installment_number:
            break
    else:
        raise NotFoundError(f"Installment {installment_number} not found in plan")

    if inst.status == InstallmentStatus.PAID:
        raise AlreadyPaidError(f"Installment {installment_number} is already paid")

    paid = dataclasses.replace(inst, status=InstallmentStatus.PAID, payment_ref=payment_ref)
    installments = plan.installments[:index] + (paid,) + plan.installments[index + 1:]
    return dataclasses.replace(plan, installments=installments)


def mark_overdue(plan: InstallmentPlan, as_of: date) -> InstallmentPlan:
    """Pending installments due strictly before as_of become overdue"""
    installments = tuple(
        dataclasses.replace(inst, status=InstallmentStatus.OVERDUE)
        if inst.status == InstallmentStatus.PENDING and inst.due_date < as_of
        else inst
        for inst in plan.installments
    )
    return dataclasses.replace(plan, installments=installments)


def next_payment_date(plan: InstallmentPlan) -> date | None:
    """Earliest due date still pending or overdue; None once the plan is closed"""
    open_dates = [inst.due_date for inst in plan.installments if inst.status != InstallmentStatus.PAID]
    return min(open_dates) if open_dates else None


def is_within_reminder_window(plan: InstallmentPlan, as_of: date, reminder_days: int) -> bool:
    """True when the next payment falls due between as_of and as_of + reminder_days"""
    next_date = next_payment_date(plan)
    if next_date is None:
        return False
    days_left = days_between(as_of, next_date)
    return 0 <= days_left <= reminder_days


def outstanding_amount(plan: InstallmentPlan) -> int:
    return sum(inst.amount for inst in plan.installments if inst.status != InstallmentStatus.PAID)
