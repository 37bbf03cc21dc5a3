"""Tests for domain entities."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from spendtrack.domain.entities import (
    Account,
    AccountType,
    Frequency,
    Transaction,
    TransactionType,
)


def _txn(**overrides):
    fields = dict(
        id="t1",
        account_id="a1",
        amount=Decimal("10.00"),
        type=TransactionType.EXPENSE,
        date=datetime(2024, 1, 1),
        payee="Cafe",
    )
    fields.update(overrides)
    return Transaction(**fields)


class TestFrequency:
    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (Frequency.DAILY, date(2024, 1, 16)),
            (Frequency.WEEKLY, date(2024, 1, 22)),
            (Frequency.BIWEEKLY, date(2024, 1, 29)),
            (Frequency.MONTHLY, date(2024, 2, 15)),
            (Frequency.QUARTERLY, date(2024, 4, 15)),
            (Frequency.YEARLY, date(2025, 1, 15)),
        ],
    )
    def test_advance_one_cycle(self, frequency, expected):
        assert frequency.advance(date(2024, 1, 15)) == expected

    def test_monthly_clamps_to_end_of_short_month(self):
        assert Frequency.MONTHLY.advance(date(2024, 1, 31)) == date(2024, 2, 29)
        assert Frequency.MONTHLY.advance(date(2023, 1, 31)) == date(2023, 2, 28)

    def test_monthly_chain_keeps_clamped_day(self):
        """Each step advances from the previous due date, so a clamp sticks."""
        due = date(2024, 1, 31)
        due = Frequency.MONTHLY.advance(due)
        due = Frequency.MONTHLY.advance(due)
        assert due == date(2024, 3, 29)

    def test_yearly_from_leap_day(self):
        assert Frequency.YEARLY.advance(date(2024, 2, 29)) == date(2025, 2, 28)

    def test_advance_keeps_time_of_day(self):
        assert Frequency.WEEKLY.advance(datetime(2024, 1, 15, 8, 30)) == datetime(2024, 1, 22, 8, 30)

    def test_labels(self):
        assert Frequency.BIWEEKLY.label == "Bi-weekly"
        assert Frequency.MONTHLY.label == "Monthly"


class TestTransaction:
    def test_income_and_expense_effect(self):
        assert _txn(type=TransactionType.INCOME).balance_effect == Decimal("10.00")
        assert _txn(type=TransactionType.EXPENSE).balance_effect == Decimal("-10.00")

    def test_transfer_effect_depends_on_side(self):
        source = _txn(type=TransactionType.TRANSFER, is_transfer_source=True)
        target = _txn(type=TransactionType.TRANSFER, is_transfer_source=False)
        assert source.is_transfer
        assert source.balance_effect == Decimal("-10.00")
        assert target.balance_effect == Decimal("10.00")

    def test_defaults(self):
        txn = _txn()
        assert txn.category == "Other"
        assert txn.notes is None
        assert txn.linked_transaction_id is None

    def test_is_immutable(self):
        txn = _txn()
        with pytest.raises(AttributeError):
            txn.amount = Decimal("1")


class TestAccount:
    def _account(self, balance, account_type):
        return Account(
            id="a1",
            name="Card",
            starting_balance=Decimal("0"),
            current_balance=Decimal(balance),
            account_type=account_type,
            created_at=datetime(2024, 1, 1),
        )

    def test_credit_account_in_debt(self):
        account = self._account("-250.00", AccountType.CREDIT)
        assert account.is_in_debt
        assert account.debt_amount == Decimal("250.00")

    def test_credit_account_with_available_credit(self):
        account = self._account("100.00", AccountType.CREDIT)
        assert not account.is_in_debt
        assert account.debt_amount == Decimal("0")

    def test_debit_account_never_in_debt(self):
        account = self._account("-20.00", AccountType.DEBIT)
        assert not account.is_in_debt
        assert account.debt_amount == Decimal("0")

    def test_balance_multiplier(self):
        assert AccountType.DEBIT.balance_multiplier == 1
        assert AccountType.CREDIT.balance_multiplier == -1
