"""Pydantic schemas for validating primitive inputs and serializing results"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ledger_engine.config import settings
from ledger_engine.domain.models import (
    EntityKind,
    Installment,
    InstallmentFrequency,
    InstallmentPlan,
    InstallmentStatus,
    PaymentStatus,
    RecurrenceFrequency,
    RecurrenceRule,
)


class PlanRequest(BaseModel):
    """Input for creating an installment plan"""

    total_amount: Decimal = Field(..., gt=0, description="Total in major currency units")
    total_installments: int = Field(..., ge=1)
    frequency: InstallmentFrequency
    first_due_date: date


class PlanEditRequest(BaseModel):
    """Changes to an unpaid installment plan; omitted fields keep their value"""

    model_config = ConfigDict(extra="forbid")

    total_amount: Optional[Decimal] = Field(None, gt=0, description="Total in major currency units")
    total_installments: Optional[int] = Field(None, ge=1)
    frequency: Optional[InstallmentFrequency] = None
    first_due_date: Optional[date] = None


class OccurrenceRequest(BaseModel):
    """Input for generating a recurrence schedule"""

    frequency: Optional[RecurrenceFrequency] = None
    start_date: date
    end_date: Optional[date] = None
    max_count: int = Field(default_factory=lambda: settings.max_occurrences, ge=1)

    def to_rule(self) -> RecurrenceRule:
        return RecurrenceRule(start_date=self.start_date, frequency=self.frequency, end_date=self.end_date)


class InstallmentSchema(BaseModel):
    """Single installment in a plan"""

    model_config = ConfigDict(from_attributes=True)

    number: int
    amount: int
    due_date: date
    status: InstallmentStatus = InstallmentStatus.PENDING
    payment_ref: Optional[str] = None


class PlanSchema(BaseModel):
    """Installment plan as stored and returned to callers"""

    model_config = ConfigDict(from_attributes=True)

    total_amount: int
    total_installments: int
    frequency: InstallmentFrequency
    first_due_date: date
    installments: List[InstallmentSchema]
    is_closed: bool = False

    @model_validator(mode="after")
    def check_installments(self) -> "PlanSchema":
        numbers = [inst.number for inst in self.installments]
        if len(set(numbers)) != len(numbers):
            raise ValueError("installment numbers must be unique")
        scheduled = sum(inst.amount for inst in self.installments)
        if scheduled != self.total_amount:
            raise ValueError(f"installment amounts sum to {scheduled}, expected {self.total_amount}")
        return self

    def to_plan(self) -> InstallmentPlan:
        """Rebuild the domain plan from a stored representation"""
        return InstallmentPlan(
            total_amount=self.total_amount,
            total_installments=self.total_installments,
            frequency=self.frequency,
            first_due_date=self.first_due_date,
            installments=tuple(
                Installment(
                    number=inst.number,
                    amount=inst.amount,
                    due_date=inst.due_date,
                    status=inst.status,
                    payment_ref=inst.payment_ref,
                )
                for inst in sorted(self.installments, key=lambda i: i.number)
            ),
        )


class PlanStatusSchema(BaseModel):
    """Plan evaluated against a reference date"""

    plan: PlanSchema
    next_payment_date: Optional[date] = None
    within_reminder_window: bool
    outstanding_amount: int
    overdue_count: int


class LedgerSummarySchema(BaseModel):
    """Derived financial state of an order, expense or material purchase"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: EntityKind
    total_amount: int
    amount_paid: int
    balance: int
    payment_status: PaymentStatus
    overpayment: int = 0
    formatted_total: str = ""
    formatted_balance: str = ""


class OccurrenceScheduleSchema(BaseModel):
    """Recurrence dates with their description"""

    description: str
    occurrences: List[date]


class PartyDebtSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    debt: int
    entity_count: int


class ReceivablesSchema(BaseModel):
    """Response for the receivables aggregate"""

    model_config = ConfigDict(from_attributes=True)

    total_count: int
    total_revenue: int
    average_value: int
    unpaid_count: int
    unpaid_total: int
    parties_with_debt: List[PartyDebtSchema]


class DelinquencySchema(BaseModel):
    """Response for the installment delinquency aggregate"""

    model_config = ConfigDict(from_attributes=True)

    overdue_count: int
    total_count: int
    delinquency_rate: float
    total_overdue_amount: int
