"""Abstract database interface.

This is the persistence capability the domain services are written against.
Implementations must make ``unit_of_work`` re-entrant and mutually exclusive:
the ledger and the recurring-payment registry share one database, and the
scheduler relies on one unit of work to serialize a whole materialization.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from spendtrack.domain.entities import (
    Account,
    RecurringPayment,
    Transaction,
    TransactionType,
)


class Database(ABC):
    """Abstract database interface for spendtrack."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager:
        """Serialize and group operations.

        Nested units of work join the outermost one; changes are committed
        when the outermost block exits normally and rolled back when it
        raises.
        """
        pass

    # Account operations
    @abstractmethod
    def add_account(self, account: Account) -> None:
        """Insert a new account (its transactions are ignored)."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID, with its transactions in insertion order."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts in creation order."""
        pass

    @abstractmethod
    def update_account(self, account: Account) -> None:
        """Persist name, icon, color and starting balance of an account."""
        pass

    @abstractmethod
    def set_current_balance(self, account_id: str, balance: Decimal) -> None:
        """Store the recomputed balance of an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> None:
        """Delete an account and anything it owns."""
        pass

    # Transaction operations
    @abstractmethod
    def add_transaction(self, transaction: Transaction) -> None:
        """Append a transaction to the end of its account's collection."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def replace_transaction(self, transaction: Transaction) -> None:
        """Overwrite a stored transaction by id.

        Keeps its position when the owning account is unchanged, otherwise
        appends it to the end of the new account's collection.
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Args:
            account_id: Only transactions owned by this account
            start_date: Inclusive lower bound on the transaction date
            end_date: Exclusive upper bound on the transaction date
            transaction_type: Only transactions of this type
        """
        pass

    # Recurring payment operations
    @abstractmethod
    def add_recurring_payment(self, payment: RecurringPayment) -> None:
        """Insert a recurring payment definition."""
        pass

    @abstractmethod
    def get_recurring_payment(self, payment_id: str) -> Optional[RecurringPayment]:
        """Get recurring payment by ID."""
        pass

    @abstractmethod
    def list_recurring_payments(
        self, account_id: Optional[str] = None, active_only: bool = False
    ) -> list[RecurringPayment]:
        """List recurring payments in creation order."""
        pass

    @abstractmethod
    def update_recurring_payment(self, payment: RecurringPayment) -> None:
        """Overwrite a stored recurring payment by id."""
        pass

    @abstractmethod
    def delete_recurring_payment(self, payment_id: str) -> None:
        """Delete a recurring payment by ID."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete all accounts, transactions and recurring payments."""
        pass
