"""Aggregate receivables and installment delinquency metrics"""

from datetime import date
from typing import Dict, Iterable

from ledger_engine.domain import ledger
from ledger_engine.domain.installments import mark_overdue
from ledger_engine.domain.models import (
    DelinquencySummary,
    InstallmentPlan,
    InstallmentStatus,
    LedgerEntity,
    PartyDebt,
    PaymentStatus,
    ReceivablesSummary,
)

_OPEN_STATUSES = (PaymentStatus.UNPAID, PaymentStatus.PARTIALLY_PAID)


def summarize_receivables(entities: Iterable[LedgerEntity]) -> ReceivablesSummary:
    """
    Revenue and outstanding debt across orders (or purchases).

    Each entity is recomputed first, so stored derived fields are ignored.
    Parties with debt are sorted by debt, highest first.
    """
    refreshed = [ledger.recompute(entity) for entity in entities]

    total_count = len(refreshed)
    total_revenue = sum(e.total_amount for e in refreshed)
    open_entities = [e for e in refreshed if e.payment_status in _OPEN_STATUSES]

    debts: Dict[str, PartyDebt] = {}
    for entity in open_entities:
        if entity.balance <= 0 or not entity.party_id:
            continue
        current = debts.get(entity.party_id)
        debts[entity.party_id] = PartyDebt(
            id=entity.party_id,
            name=entity.party_name or "Unknown",
            debt=(current.debt if current else 0) + entity.balance,
            entity_count=(current.entity_count if current else 0) + 1,
        )

    return ReceivablesSummary(
        total_count=total_count,
        total_revenue=total_revenue,
        average_value=total_revenue // total_count if total_count else 0,
        unpaid_count=len(open_entities),
        unpaid_total=sum(e.balance for e in open_entities),
        parties_with_debt=tuple(sorted(debts.values(), key=lambda d: (-d.debt, d.id))),
    )


def installment_delinquency(plans: Iterable[InstallmentPlan], as_of: date) -> DelinquencySummary:
    """Share of installments overdue as of a date, as a percentage"""
    installments = [inst for plan in plans for inst in mark_overdue(plan, as_of).installments]
    overdue = [inst for inst in installments if inst.status == InstallmentStatus.OVERDUE]

    total_count = len(installments)
    return DelinquencySummary(
        overdue_count=len(overdue),
        total_count=total_count,
        delinquency_rate=round(len(overdue) / total_count * 100, 2) if total_count else 0.0,
        total_overdue_amount=sum(inst.amount for inst in overdue),
    )
