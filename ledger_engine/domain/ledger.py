"""Ledger calculations shared by orders, expenses and material purchases"""

import dataclasses
from typing import Iterable

from ledger_engine.domain.models import LedgerEntity, LineItem, Payment, PaymentStatus
from ledger_engine.utils.money import ensure_amount


def compute_total(items: Iterable[LineItem]) -> int:
    """
    Sum quantity * unit_price over all items.

    Raises:
        ValidationError: quantity below 1, negative price, or a non-finite
            number, naming the offending field (e.g. items[2].unit_price)
    """
    total = 0
    for i, item in enumerate(items):
        quantity = ensure_amount(item.quantity, f"items[{i}].quantity", allow_zero=False)
        unit_price = ensure_amount(item.unit_price, f"items[{i}].unit_price")
        total += quantity * unit_price
    return total


def compute_amount_paid(payments: Iterable[Payment]) -> int:
    """Sum of payment amounts; every amount must be strictly positive"""
    paid = 0
    for i, payment in enumerate(payments):
        paid += ensure_amount(payment.amount, f"payments[{i}].amount", allow_zero=False)
    return paid


def compute_balance(total: int, paid: int) -> int:
    """Outstanding balance, never negative even on overpayment"""
    return max(0, total - paid)


def overpayment(total: int, paid: int) -> int:
    """Amount paid beyond the total; what to do with it is the caller's policy"""
    return max(0, paid - total)


def derive_payment_status(total: int, paid: int) -> PaymentStatus:
    """
    Map (total, paid) to a payment status.

    Rules, in order:
    - nothing owed (total == 0) -> unpaid
    - nothing paid -> unpaid
    - paid covers total -> paid
    - otherwise -> partially_paid
    """
    if total == 0 or paid == 0:
        return PaymentStatus.UNPAID
    if paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def recompute(entity: LedgerEntity) -> LedgerEntity:
    """Return a copy of entity with total, paid, balance and status refreshed"""
    items = tuple(entity.items)
    payments = tuple(entity.payments)

    total = compute_total(items)
    paid = compute_amount_paid(payments)

    return dataclasses.replace(
        entity,
        items=items,
        payments=payments,
        total_amount=total,
        amount_paid=paid,
        balance=compute_balance(total, paid),
        payment_status=derive_payment_status(total, paid),
    )
