"""Tests for RecurringPaymentService."""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from spendtrack.domain.entities import Frequency, TransactionType
from spendtrack.domain.errors import InvalidAmountError, NotFoundError, ValidationError
from spendtrack.domain.recurring import is_due


@pytest.fixture
def streaming(registry, checking):
    return registry.add_payment(
        name="Streaming",
        amount="9.99",
        account_id=checking.id,
        frequency="monthly",
        next_due_date=date(2024, 1, 15),
        payee="StreamCo",
        category="Entertainment",
    )


def test_add_payment(registry, streaming, checking):
    assert streaming.amount == Decimal("9.99")
    assert streaming.frequency is Frequency.MONTHLY
    assert streaming.type is TransactionType.EXPENSE
    assert streaming.next_due_date == datetime(2024, 1, 15)
    assert streaming.is_active
    assert streaming.last_processed_date is None
    assert registry.get_payment(streaming.id) == streaming
    assert registry.get_payments_for_account(checking.id) == [streaming]


@pytest.mark.parametrize(
    "overrides,error",
    [
        ({"name": " "}, ValidationError),
        ({"amount": "0"}, InvalidAmountError),
        ({"frequency": "hourly"}, ValidationError),
        ({"transaction_type": "transfer"}, ValidationError),
    ],
)
def test_add_payment_validation(registry, checking, overrides, error):
    fields = dict(
        name="Rent",
        amount="1200",
        account_id=checking.id,
        frequency="monthly",
        next_due_date=date(2024, 2, 1),
        payee="Landlord",
    )
    fields.update(overrides)
    with pytest.raises(error):
        registry.add_payment(**fields)
    assert registry.list_payments() == []


def test_is_due_compares_calendar_days(streaming):
    assert not is_due(streaming, datetime(2024, 1, 14, 23, 59))
    assert is_due(streaming, datetime(2024, 1, 15, 0, 0))
    assert is_due(streaming, date(2024, 3, 1))
    assert not is_due(replace(streaming, is_active=False), date(2024, 3, 1))


def test_get_due_payments(registry, checking, streaming):
    registry.add_payment(
        name="Gym",
        amount="30",
        account_id=checking.id,
        frequency=Frequency.MONTHLY,
        next_due_date=date(2024, 1, 20),
        payee="Gym",
    )
    assert [p.name for p in registry.get_due_payments(date(2024, 1, 15))] == ["Streaming"]
    assert [p.name for p in registry.get_due_payments(date(2024, 1, 20))] == ["Streaming", "Gym"]


def test_toggle_active(registry, streaming):
    paused = registry.toggle_active(streaming.id)
    assert not paused.is_active
    assert registry.get_due_payments(date(2024, 2, 1)) == []
    assert registry.toggle_active(streaming.id).is_active


def test_update_payment_keeps_bookkeeping(registry, streaming):
    registry.mark_processed(streaming.id, datetime(2024, 1, 15, 8))
    stale = replace(streaming, amount=Decimal("12.99"), name="Streaming HD")
    updated = registry.update_payment(stale)

    assert updated.amount == Decimal("12.99")
    assert updated.name == "Streaming HD"
    assert updated.last_processed_date == datetime(2024, 1, 15, 8)
    assert updated.created_at == streaming.created_at


def test_mark_processed_advances_from_due_date(registry, streaming):
    updated = registry.mark_processed(streaming.id, datetime(2024, 1, 20, 10))
    assert updated.next_due_date == datetime(2024, 2, 15)
    assert updated.last_processed_date == datetime(2024, 1, 20, 10)
    assert registry.require_payment(streaming.id) == updated


def test_delete_payment(registry, streaming):
    registry.delete_payment(streaming.id)
    assert registry.get_payment(streaming.id) is None
    with pytest.raises(NotFoundError):
        registry.delete_payment(streaming.id)


def test_missing_payment(registry):
    with pytest.raises(NotFoundError):
        registry.require_payment("missing")
    with pytest.raises(NotFoundError):
        registry.toggle_active("missing")
