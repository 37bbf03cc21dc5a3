"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the enum <-> string
translation the schema uses.
"""

from typing import Iterable

from spendtrack.domain import entities as domain
from spendtrack.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    RecurringPayment as ORMRecurringPayment,
)


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        amount=orm_transaction.amount,
        type=domain.TransactionType(orm_transaction.type),
        date=orm_transaction.date,
        payee=orm_transaction.payee,
        category=orm_transaction.category,
        notes=orm_transaction.notes,
        target_account_id=orm_transaction.target_account_id,
        is_transfer_source=orm_transaction.is_transfer_source,
        linked_transaction_id=orm_transaction.linked_transaction_id,
    )


def account_to_domain(
    orm_account: ORMAccount, orm_transactions: Iterable[ORMTransaction]
) -> domain.Account:
    """Convert SQLAlchemy Account model plus its ordered transactions to a domain Account."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        starting_balance=orm_account.starting_balance,
        current_balance=orm_account.current_balance,
        account_type=domain.AccountType(orm_account.account_type),
        created_at=orm_account.created_at,
        icon=orm_account.icon,
        color=orm_account.color,
        transactions=tuple(transaction_to_domain(t) for t in orm_transactions),
    )


def recurring_payment_to_domain(orm_payment: ORMRecurringPayment) -> domain.RecurringPayment:
    """Convert SQLAlchemy RecurringPayment model to domain RecurringPayment entity."""
    return domain.RecurringPayment(
        id=orm_payment.id,
        name=orm_payment.name,
        amount=orm_payment.amount,
        account_id=orm_payment.account_id,
        frequency=domain.Frequency(orm_payment.frequency),
        next_due_date=orm_payment.next_due_date,
        payee=orm_payment.payee,
        type=domain.TransactionType(orm_payment.type),
        created_at=orm_payment.created_at,
        category=orm_payment.category,
        category_icon=orm_payment.category_icon,
        notes=orm_payment.notes,
        is_active=orm_payment.is_active,
        last_processed_date=orm_payment.last_processed_date,
    )


def transaction_fields(transaction: domain.Transaction) -> dict:
    """Column values for a domain Transaction (everything except ``position``)."""
    return {
        "id": transaction.id,
        "account_id": transaction.account_id,
        "amount": transaction.amount,
        "type": transaction.type.value,
        "date": transaction.date,
        "payee": transaction.payee,
        "category": transaction.category,
        "notes": transaction.notes,
        "target_account_id": transaction.target_account_id,
        "is_transfer_source": transaction.is_transfer_source,
        "linked_transaction_id": transaction.linked_transaction_id,
    }


def recurring_payment_fields(payment: domain.RecurringPayment) -> dict:
    """Column values for a domain RecurringPayment."""
    return {
        "id": payment.id,
        "name": payment.name,
        "amount": payment.amount,
        "account_id": payment.account_id,
        "frequency": payment.frequency.value,
        "next_due_date": payment.next_due_date,
        "payee": payment.payee,
        "type": payment.type.value,
        "category": payment.category,
        "category_icon": payment.category_icon,
        "notes": payment.notes,
        "is_active": payment.is_active,
        "last_processed_date": payment.last_processed_date,
        "created_at": payment.created_at,
    }
