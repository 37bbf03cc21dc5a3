"""Tests for database mappers."""

from datetime import datetime
from decimal import Decimal

from spendtrack.database.models import (
    Account as ORMAccount,
    RecurringPayment as ORMRecurringPayment,
    Transaction as ORMTransaction,
)
from spendtrack.database.mappers import (
    account_to_domain,
    recurring_payment_fields,
    recurring_payment_to_domain,
    transaction_fields,
    transaction_to_domain,
)
from spendtrack.domain.entities import (
    Account,
    AccountType,
    Frequency,
    RecurringPayment,
    Transaction,
    TransactionType,
)


def _orm_transaction(**overrides):
    fields = dict(
        id="t1",
        account_id="a1",
        position=0,
        amount=Decimal("12.50"),
        type="transfer",
        date=datetime(2024, 1, 2, 15, 30),
        payee="Transfer to Savings",
        category="Transfer",
        notes=None,
        target_account_id="a2",
        is_transfer_source=True,
        linked_transaction_id="t2",
    )
    fields.update(overrides)
    return ORMTransaction(**fields)


class TestTransactionMapper:
    def test_transaction_to_domain(self):
        txn = transaction_to_domain(_orm_transaction())

        assert isinstance(txn, Transaction)
        assert txn.type is TransactionType.TRANSFER
        assert txn.amount == Decimal("12.50")
        assert txn.is_transfer_source is True
        assert txn.linked_transaction_id == "t2"
        assert txn.balance_effect == Decimal("-12.50")

    def test_transaction_fields_are_column_values(self):
        txn = transaction_to_domain(_orm_transaction(type="expense", is_transfer_source=None))
        fields = transaction_fields(txn)

        assert fields["type"] == "expense"
        assert "position" not in fields
        assert set(fields) == {
            "id", "account_id", "amount", "type", "date", "payee", "category",
            "notes", "target_account_id", "is_transfer_source", "linked_transaction_id",
        }


class TestAccountMapper:
    def test_account_to_domain_keeps_transaction_order(self):
        orm_account = ORMAccount(
            id="a1",
            position=0,
            name="Visa",
            account_type="credit",
            starting_balance=Decimal("-500.00"),
            current_balance=Decimal("-512.50"),
            created_at=datetime(2024, 1, 1),
        )
        rows = [_orm_transaction(id="t1", position=0), _orm_transaction(id="t0", position=1)]

        account = account_to_domain(orm_account, rows)

        assert isinstance(account, Account)
        assert account.account_type is AccountType.CREDIT
        assert [t.id for t in account.transactions] == ["t1", "t0"]
        assert account.is_in_debt


class TestRecurringPaymentMapper:
    def test_round_trip_through_fields(self):
        orm_payment = ORMRecurringPayment(
            id="p1",
            position=0,
            name="Rent",
            amount=Decimal("1200.00"),
            account_id="a1",
            frequency="quarterly",
            next_due_date=datetime(2024, 3, 1),
            payee="Landlord",
            type="expense",
            category="Housing",
            category_icon=None,
            notes=None,
            is_active=False,
            last_processed_date=datetime(2023, 12, 1, 0, 1),
            created_at=datetime(2023, 1, 1),
        )

        payment = recurring_payment_to_domain(orm_payment)

        assert isinstance(payment, RecurringPayment)
        assert payment.frequency is Frequency.QUARTERLY
        assert payment.is_active is False
        assert recurring_payment_fields(payment)["frequency"] == "quarterly"
        assert recurring_payment_to_domain(ORMRecurringPayment(position=0, **recurring_payment_fields(payment))) == payment
