"""Pytest fixtures for testing"""

import pytest
from datetime import date

from ledger_engine.domain.models import (
    EntityKind,
    LedgerEntity,
    LineItem,
    Payment,
    PaymentMethod,
)
from ledger_engine.infrastructure.cache import TTLCache


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    """Isolated cache driven by the fake clock"""
    return TTLCache(name="test", clock=clock)


@pytest.fixture
def sample_order() -> LedgerEntity:
    """Order for 3 shirts and 2 banners, partly paid"""
    return LedgerEntity(
        id="order_1",
        kind=EntityKind.ORDER,
        items=(
            LineItem(quantity=3, unit_price=25000, description="Printed shirt"),
            LineItem(quantity=2, unit_price=60000, description="Banner"),
        ),
        payments=(
            Payment(amount=50000, date=date(2024, 1, 10), method=PaymentMethod.MOBILE_PAYMENT),
        ),
        party_id="client_a",
        party_name="Acme Schools",
    )


@pytest.fixture
def sample_orders() -> list[LedgerEntity]:
    """Mix of paid, partially paid and unpaid orders across two clients"""
    return [
        LedgerEntity(
            id="order_paid",
            kind=EntityKind.ORDER,
            items=(LineItem(quantity=1, unit_price=100000),),
            payments=(Payment(amount=100000, date=date(2024, 2, 1)),),
            party_id="client_a",
            party_name="Acme Schools",
        ),
        LedgerEntity(
            id="order_partial",
            kind=EntityKind.ORDER,
            items=(LineItem(quantity=2, unit_price=50000),),
            payments=(Payment(amount=30000, date=date(2024, 2, 3)),),
            party_id="client_a",
            party_name="Acme Schools",
        ),
        LedgerEntity(
            id="order_unpaid",
            kind=EntityKind.ORDER,
            items=(LineItem(quantity=4, unit_price=25000),),
            party_id="client_b",
            party_name="Kampala Traders",
        ),
        LedgerEntity(
            id="order_unpaid_2",
            kind=EntityKind.ORDER,
            items=(LineItem(quantity=1, unit_price=20000),),
            party_id="client_a",
            party_name="Acme Schools",
        ),
    ]
