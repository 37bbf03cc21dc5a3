"""Domain model entities for spendtrack.

These are pure data classes representing business concepts, independent of
database schema. Entities are immutable; services produce updated copies with
``dataclasses.replace`` and hand them to the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

DEFAULT_CATEGORY = "Other"
TRANSFER_CATEGORY = "Transfer"


class AccountType(str, Enum):
    """Account kind with the sign convention applied to starting balances."""

    DEBIT = "debit"
    CREDIT = "credit"

    @property
    def balance_multiplier(self) -> int:
        """+1 for asset-like accounts, -1 for liability-like accounts."""
        return 1 if self is AccountType.DEBIT else -1

    @property
    def label(self) -> str:
        return self.value.capitalize()


class TransactionType(str, Enum):
    """Direction of a ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Frequency(str, Enum):
    """Recurrence cadence of a recurring payment."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def label(self) -> str:
        return "Bi-weekly" if self is Frequency.BIWEEKLY else self.value.capitalize()

    @property
    def offset(self) -> relativedelta:
        return _FREQUENCY_OFFSETS[self]

    def advance(self, when):
        """Return ``when`` moved forward by one cycle.

        Uses calendar arithmetic: monthly, quarterly and yearly steps keep the
        day of month and clamp to the last day of shorter months. Works for
        both ``date`` and ``datetime`` values.
        """
        return when + self.offset


_FREQUENCY_OFFSETS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.BIWEEKLY: relativedelta(weeks=2),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


@dataclass(frozen=True)
class Transaction:
    """Ledger entry owned by exactly one account."""

    id: str
    account_id: str
    amount: Decimal
    type: TransactionType
    date: datetime
    payee: str
    category: str = DEFAULT_CATEGORY
    notes: Optional[str] = None
    target_account_id: Optional[str] = None
    is_transfer_source: Optional[bool] = None
    linked_transaction_id: Optional[str] = None

    @property
    def is_transfer(self) -> bool:
        return self.type is TransactionType.TRANSFER

    @property
    def balance_effect(self) -> Decimal:
        """Signed change this entry applies to its owning account's balance."""
        if self.type is TransactionType.INCOME:
            return self.amount
        if self.type is TransactionType.EXPENSE:
            return -self.amount
        if self.is_transfer_source is None:
            return Decimal("0")
        return -self.amount if self.is_transfer_source else self.amount


@dataclass(frozen=True)
class Account:
    """Account domain entity with its transactions in insertion order."""

    id: str
    name: str
    starting_balance: Decimal
    current_balance: Decimal
    account_type: AccountType
    created_at: datetime
    icon: Optional[str] = None
    color: Optional[str] = None
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)

    @property
    def is_in_debt(self) -> bool:
        return self.account_type is AccountType.CREDIT and self.current_balance < 0

    @property
    def debt_amount(self) -> Decimal:
        if self.account_type is not AccountType.CREDIT:
            return Decimal("0")
        return abs(min(self.current_balance, Decimal("0")))


@dataclass(frozen=True)
class RecurringPayment:
    """Template for a transaction that repeats on a calendar cadence."""

    id: str
    name: str
    amount: Decimal
    account_id: str
    frequency: Frequency
    next_due_date: datetime
    payee: str
    type: TransactionType
    created_at: datetime
    category: str = DEFAULT_CATEGORY
    category_icon: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    last_processed_date: Optional[datetime] = None
