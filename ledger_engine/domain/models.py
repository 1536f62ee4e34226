"""Domain models - pure Python dataclasses representing ledger entities

Money values are integers in the currency's minor unit (see utils.money).
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Tuple


class EntityKind(str, Enum):
    ORDER = "order"
    EXPENSE = "expense"
    MATERIAL_PURCHASE = "material_purchase"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    CHEQUE = "cheque"
    MOBILE_PAYMENT = "mobile_payment"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class InstallmentFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class LineItem:
    """Priced line on an order, expense or material purchase"""

    quantity: int
    unit_price: int
    description: str = ""


@dataclass(frozen=True)
class Payment:
    """Money received against a ledger entity"""

    amount: int
    date: date
    method: PaymentMethod = PaymentMethod.CASH
    reference: str | None = None


@dataclass(frozen=True)
class LedgerEntity:
    """
    Order, expense or material purchase whose financial state is derived
    from its items and payments.

    The derived fields are only trustworthy on values returned by
    ledger.recompute(); they are never a source of truth.
    """

    id: str
    kind: EntityKind
    items: Tuple[LineItem, ...] = ()
    payments: Tuple[Payment, ...] = ()
    party_id: str | None = None  # client for orders, supplier for purchases
    party_name: str | None = None

    # Derived
    total_amount: int = 0
    amount_paid: int = 0
    balance: int = 0
    payment_status: PaymentStatus = PaymentStatus.UNPAID


@dataclass(frozen=True)
class Installment:
    """Single payment in an installment plan"""

    number: int
    amount: int
    due_date: date
    status: InstallmentStatus = InstallmentStatus.PENDING
    payment_ref: str | None = None


@dataclass(frozen=True)
class InstallmentPlan:
    """Dated schedule splitting a total amount into installments"""

    total_amount: int
    total_installments: int
    frequency: InstallmentFrequency
    first_due_date: date
    installments: Tuple[Installment, ...] = ()

    @property
    def is_closed(self) -> bool:
        return all(inst.status == InstallmentStatus.PAID for inst in self.installments)

    @property
    def has_payments(self) -> bool:
        return any(inst.status == InstallmentStatus.PAID for inst in self.installments)


@dataclass(frozen=True)
class RecurrenceRule:
    """Schedule for a recurring task or expense; frequency None means one-time"""

    start_date: date
    frequency: RecurrenceFrequency | None = None
    end_date: date | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency is not None


@dataclass(frozen=True)
class PartyDebt:
    """Outstanding balance owed by one client or supplier"""

    id: str
    name: str
    debt: int
    entity_count: int


@dataclass(frozen=True)
class ReceivablesSummary:
    """Aggregate payment state over a set of ledger entities"""

    total_count: int
    total_revenue: int
    average_value: int
    unpaid_count: int
    unpaid_total: int
    parties_with_debt: Tuple[PartyDebt, ...]


@dataclass(frozen=True)
class DelinquencySummary:
    """Overdue installments across a set of plans"""

    overdue_count: int
    total_count: int
    delinquency_rate: float
    total_overdue_amount: int
