"""Ledger domain service: accounts, transactions and transfers.

Every mutation recomputes the affected account balances from the full
transaction history inside the same unit of work, so a failed call leaves
both the transactions and the cached balances untouched.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from spendtrack.database.base import Database
from spendtrack.domain import summary
from spendtrack.domain.entities import (
    DEFAULT_CATEGORY,
    TRANSFER_CATEGORY,
    Account,
    AccountType,
    Transaction,
    TransactionType,
)
from spendtrack.domain.errors import (
    ConflictError,
    DependencyError,
    InvalidAmountError,
    NotFoundError,
    TransferAccountMismatchError,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    invalid_amount,
    transaction_not_found,
    transfer_same_account,
)
from spendtrack.utils.dates import start_of_day, to_datetime

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
UNKNOWN_ACCOUNT_NAME = "Unknown Account"


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


def _to_decimal(value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError(invalid_amount(value))
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(invalid_amount(value))


def normalize_amount(amount) -> Decimal:
    """Validate a transaction amount and round it to cents.

    Raises:
        InvalidAmountError: If the amount is not a finite number greater than
            zero after rounding
    """
    value = _to_decimal(amount)
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(invalid_amount(amount))
    value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if value <= 0:
        raise InvalidAmountError(invalid_amount(amount))
    return value


def normalize_balance(balance) -> Decimal:
    """Validate a signed balance (zero and negatives allowed) and round it to cents."""
    value = _to_decimal(balance)
    if not value.is_finite():
        raise InvalidAmountError(f"Balance must be a finite number (got {balance})")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def recalculate_balance(account: Account) -> Decimal:
    """Return the balance implied by the starting balance and full history.

    Income adds, expenses subtract, and a transfer subtracts on its source
    side and adds on its target side.
    """
    balance = account.starting_balance
    for transaction in account.transactions:
        balance += transaction.balance_effect
    return balance


def new_transaction(
    account_id: str,
    amount,
    transaction_type: TransactionType,
    date: date | datetime,
    payee: str,
    category: Optional[str] = None,
    notes: Optional[str] = None,
) -> Transaction:
    """Build an income or expense Transaction with a fresh id."""
    return Transaction(
        id=new_id(),
        account_id=account_id,
        amount=_to_decimal(amount),
        type=TransactionType(transaction_type),
        date=to_datetime(date),
        payee=payee,
        category=category or DEFAULT_CATEGORY,
        notes=notes,
    )


class LedgerService:
    """Service for managing accounts, their transactions and transfers."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    # Accounts

    def create_account(
        self,
        name: str,
        starting_balance=Decimal("0"),
        account_type: AccountType | str = AccountType.DEBIT,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Account:
        """Create a new account.

        The account type's balance multiplier is applied to the starting
        balance exactly once, here. A credit account opened with 500 owed is
        therefore stored with a starting balance of -500.

        Args:
            name: Display name
            starting_balance: Opening balance as the user enters it
            account_type: AccountType or its string value
            icon: Optional icon label
            color: Optional color label
            created_at: Creation time (defaults to now)

        Returns:
            The created Account

        Raises:
            ValidationError: If the name is empty or the type is unknown
            InvalidAmountError: If the starting balance is not finite
        """
        if not name or not name.strip():
            raise ValidationError("Account name cannot be empty")
        try:
            account_type = AccountType(account_type)
        except ValueError:
            raise ValidationError(f"Unknown account type '{account_type}'")

        starting = normalize_balance(starting_balance) * account_type.balance_multiplier
        if not starting:
            starting = abs(starting)
        account = Account(
            id=new_id(),
            name=name.strip(),
            starting_balance=starting,
            current_balance=starting,
            account_type=account_type,
            created_at=created_at or datetime.now(),
            icon=icon,
            color=color,
        )
        self.db.add_account(account)
        logger.info("Created account", extra={"account_id": account.id, "account_type": account_type.value})
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID, or None if not found."""
        return self.db.get_account(account_id)

    def require_account(self, account_id: str) -> Account:
        """Get account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[Account]:
        """List all accounts in creation order."""
        return self.db.list_accounts()

    def get_account_name(self, account_id: str) -> str:
        account = self.db.get_account(account_id)
        return account.name if account is not None else UNKNOWN_ACCOUNT_NAME

    def update_account(
        self,
        account_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Account:
        """Edit the display fields of an account.

        Balances and the account type are not editable.
        """
        with self.db.unit_of_work():
            account = self.require_account(account_id)
            if name is not None and not name.strip():
                raise ValidationError("Account name cannot be empty")
            updated = replace(
                account,
                name=name.strip() if name is not None else account.name,
                icon=icon if icon is not None else account.icon,
                color=color if color is not None else account.color,
            )
            self.db.update_account(updated)
        return updated

    def delete_account(self, account_id: str) -> None:
        """Delete an account that owns no transactions.

        Raises:
            NotFoundError: If the account does not exist
            DependencyError: If the account still has transactions
        """
        with self.db.unit_of_work():
            account = self.require_account(account_id)
            if account.transactions:
                raise DependencyError(account_delete_blocked(account_id, len(account.transactions)))
            self.db.delete_account(account_id)
        logger.info("Deleted account", extra={"account_id": account_id})

    def merge_accounts(self, source_id: str, target_id: str) -> Account:
        """Fold ``source_id`` into ``target_id`` and delete the source account.

        Every transaction of the source moves to the end of the target.
        Transfers keep their counterpart, which is re-pointed at the target;
        a transfer between the two merged accounts is dropped, since both of
        its sides would land in the same account. The source's starting
        balance is added to the target's and recurring payments drawing on
        the source are moved to the target.

        Returns:
            The merged target account

        Raises:
            NotFoundError: If either account does not exist
            ValidationError: If the accounts are the same or of different types
        """
        if source_id == target_id:
            raise ValidationError("Cannot merge an account into itself")

        with self.db.unit_of_work():
            source = self.require_account(source_id)
            target = self.require_account(target_id)
            if source.account_type is not target.account_type:
                raise ValidationError(
                    f"Cannot merge a {source.account_type.value} account into a "
                    f"{target.account_type.value} account"
                )

            dropped: set[str] = set()
            for transaction in source.transactions:
                if transaction.id in dropped:
                    continue
                if not transaction.is_transfer:
                    self.db.replace_transaction(replace(transaction, account_id=target_id))
                    continue

                sibling = self.db.get_transaction(transaction.linked_transaction_id or "")
                if sibling is not None and sibling.account_id == target_id:
                    self.db.delete_transaction(sibling.id)
                    self.db.delete_transaction(transaction.id)
                    dropped.add(sibling.id)
                    continue

                self.db.replace_transaction(replace(transaction, account_id=target_id))
                if sibling is not None:
                    direction = "to" if sibling.is_transfer_source else "from"
                    self.db.replace_transaction(
                        replace(
                            sibling,
                            target_account_id=target_id,
                            payee=f"Transfer {direction} {target.name}",
                        )
                    )

            for payment in self.db.list_recurring_payments(account_id=source_id):
                self.db.update_recurring_payment(replace(payment, account_id=target_id))

            self.db.update_account(
                replace(target, starting_balance=target.starting_balance + source.starting_balance)
            )
            self.db.delete_account(source_id)
            self._recompute(target_id)
            merged = self.require_account(target_id)

        logger.info(
            "Merged accounts",
            extra={
                "source_account_id": source_id,
                "target_account_id": target_id,
                "transactions": len(source.transactions),
            },
        )
        return merged

    def _recompute(self, account_id: str) -> Decimal:
        account = self.require_account(account_id)
        balance = recalculate_balance(account)
        self.db.set_current_balance(account_id, balance)
        return balance

    # Transactions

    def add_transaction(self, transaction: Transaction, account_id: str) -> Transaction:
        """Append an income or expense transaction to an account.

        The transaction is stored under ``account_id`` whatever its own
        ``account_id`` says, and the account balance is recomputed.

        Returns:
            The stored Transaction

        Raises:
            NotFoundError: If the account does not exist
            InvalidAmountError: If the amount is not positive and finite
            ValidationError: If the transaction is a transfer
            ConflictError: If a transaction with the same id already exists
        """
        with self.db.unit_of_work():
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))
            if transaction.is_transfer:
                raise ValidationError("Transfers must be recorded with add_transfer")
            stored = replace(
                transaction,
                account_id=account_id,
                amount=normalize_amount(transaction.amount),
                date=to_datetime(transaction.date),
                target_account_id=None,
                is_transfer_source=None,
                linked_transaction_id=None,
            )
            if self.db.get_transaction(stored.id) is not None:
                raise ConflictError(f"Transaction {stored.id} already exists")
            self.db.add_transaction(stored)
            balance = self._recompute(account_id)

        logger.info(
            "Added transaction",
            extra={"account_id": account_id, "transaction_id": stored.id, "balance": str(balance)},
        )
        return stored

    def record_transaction(
        self,
        account_id: str,
        amount,
        transaction_type: TransactionType | str,
        date: date | datetime,
        payee: str,
        category: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Build a new income or expense transaction and add it to an account."""
        try:
            transaction_type = TransactionType(transaction_type)
        except ValueError:
            raise ValidationError(f"Unknown transaction type '{transaction_type}'")
        transaction = new_transaction(
            account_id, amount, transaction_type, date, payee, category=category, notes=notes
        )
        return self.add_transaction(transaction, account_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID, or None if not found."""
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """List transactions, optionally filtered.

        Args:
            account_id: Only this account's transactions
            start_date: First day to include
            end_date: Last day to include
            transaction_type: Only this type

        Returns:
            Transactions grouped by account, in insertion order
        """
        start = start_of_day(start_date) if start_date is not None else None
        end = start_of_day(end_date) + timedelta(days=1) if end_date is not None else None
        return self.db.list_transactions(
            account_id=account_id,
            start_date=start,
            end_date=end,
            transaction_type=transaction_type,
        )

    def search_transactions(self, query: str) -> list[Transaction]:
        """Case-insensitive search over payee, notes and amount."""
        needle = query.strip().lower()
        return [
            t
            for t in self.db.list_transactions()
            if needle in t.payee.lower()
            or (t.notes is not None and needle in t.notes.lower())
            or needle in str(t.amount)
        ]

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        """Most recent transactions across all accounts, newest first."""
        return sorted(self.db.list_transactions(), key=lambda t: t.date, reverse=True)[:limit]

    def update_transaction(self, transaction: Transaction) -> Transaction:
        """Replace a stored transaction by id and recompute balances.

        Editing one side of a transfer carries the new amount, date and notes
        over to its linked counterpart, so the pair stays balanced. The owning
        account, the type and the transfer links cannot be changed here.

        Raises:
            NotFoundError: If the transaction or its account does not exist
            InvalidAmountError: If the new amount is not positive and finite
            ValidationError: If the edit changes the account or the type of a transfer
        """
        with self.db.unit_of_work():
            existing = self.db.get_transaction(transaction.id)
            if existing is None:
                raise NotFoundError(transaction_not_found(transaction.id))
            self.require_account(existing.account_id)
            if transaction.account_id != existing.account_id:
                raise ValidationError("Use move_transaction to change a transaction's account")
            if existing.is_transfer != transaction.is_transfer:
                raise ValidationError("Cannot change a transaction to or from a transfer")

            amount = normalize_amount(transaction.amount)
            updated = replace(
                transaction,
                amount=amount,
                date=to_datetime(transaction.date),
                target_account_id=existing.target_account_id,
                is_transfer_source=existing.is_transfer_source,
                linked_transaction_id=existing.linked_transaction_id,
            )
            self.db.replace_transaction(updated)
            self._recompute(existing.account_id)

            if existing.is_transfer and existing.linked_transaction_id is not None:
                sibling = self.db.get_transaction(existing.linked_transaction_id)
                if sibling is not None:
                    self.db.replace_transaction(
                        replace(sibling, amount=amount, date=updated.date, notes=updated.notes)
                    )
                    self._recompute(sibling.account_id)

        logger.info("Updated transaction", extra={"transaction_id": transaction.id})
        return updated

    def move_transaction(self, transaction_id: str, target_account_id: str) -> Transaction:
        """Move an income or expense transaction to another account.

        Raises:
            NotFoundError: If the transaction or the target account does not exist
            ValidationError: If the transaction is a transfer
        """
        with self.db.unit_of_work():
            existing = self.db.get_transaction(transaction_id)
            if existing is None:
                raise NotFoundError(transaction_not_found(transaction_id))
            if existing.is_transfer:
                raise ValidationError("Transfers cannot be moved between accounts")
            self.require_account(target_account_id)
            if existing.account_id == target_account_id:
                return existing
            moved = replace(existing, account_id=target_account_id)
            self.db.replace_transaction(moved)
            self._recompute(existing.account_id)
            self._recompute(target_account_id)
        return moved

    def delete_transaction(self, transaction: Transaction | str, account_id: str) -> None:
        """Delete a transaction from an account and recompute its balance.

        Deleting either side of a transfer also deletes the linked
        counterpart from the other account and recomputes that balance too.

        Args:
            transaction: Transaction or its id
            account_id: Account that owns the transaction

        Raises:
            NotFoundError: If the account does not exist or does not own the transaction
        """
        transaction_id = transaction.id if isinstance(transaction, Transaction) else transaction
        with self.db.unit_of_work():
            account = self.require_account(account_id)
            target = next((t for t in account.transactions if t.id == transaction_id), None)
            if target is None:
                raise NotFoundError(transaction_not_found(transaction_id, account_id))

            self.db.delete_transaction(target.id)
            self._recompute(account_id)

            if target.is_transfer and target.linked_transaction_id is not None:
                sibling = self.db.get_transaction(target.linked_transaction_id)
                if sibling is not None and sibling.account_id != account_id:
                    self.db.delete_transaction(sibling.id)
                    self._recompute(sibling.account_id)

        logger.info(
            "Deleted transaction",
            extra={"account_id": account_id, "transaction_id": transaction_id},
        )

    # Transfers

    def add_transfer(
        self,
        amount,
        from_account_id: str,
        to_account_id: str,
        date: date | datetime,
        notes: Optional[str] = None,
    ) -> tuple[Transaction, Transaction]:
        """Move money between two accounts as a linked pair of transactions.

        Both accounts are validated before either is touched, and both
        appends happen in one unit of work.

        Returns:
            (source_transaction, target_transaction)

        Raises:
            InvalidAmountError: If the amount is not positive and finite
            TransferAccountMismatchError: If the accounts are equal or either
                does not exist
        """
        amount = normalize_amount(amount)
        if from_account_id == to_account_id:
            raise TransferAccountMismatchError(transfer_same_account(from_account_id))

        when = to_datetime(date)
        with self.db.unit_of_work():
            source_account = self.db.get_account(from_account_id)
            target_account = self.db.get_account(to_account_id)
            for account_id, account in ((from_account_id, source_account), (to_account_id, target_account)):
                if account is None:
                    raise TransferAccountMismatchError(account_not_found(account_id))

            source_id, target_id = new_id(), new_id()
            source = Transaction(
                id=source_id,
                account_id=from_account_id,
                amount=amount,
                type=TransactionType.TRANSFER,
                date=when,
                payee=f"Transfer to {target_account.name}",
                category=TRANSFER_CATEGORY,
                notes=notes,
                target_account_id=to_account_id,
                is_transfer_source=True,
                linked_transaction_id=target_id,
            )
            target = Transaction(
                id=target_id,
                account_id=to_account_id,
                amount=amount,
                type=TransactionType.TRANSFER,
                date=when,
                payee=f"Transfer from {source_account.name}",
                category=TRANSFER_CATEGORY,
                notes=notes,
                target_account_id=from_account_id,
                is_transfer_source=False,
                linked_transaction_id=source_id,
            )
            self.db.add_transaction(source)
            self.db.add_transaction(target)
            self._recompute(from_account_id)
            self._recompute(to_account_id)

        logger.info(
            "Recorded transfer",
            extra={"from_account_id": from_account_id, "to_account_id": to_account_id, "amount": str(amount)},
        )
        return source, target

    # Aggregates

    def total_balance(self) -> Decimal:
        return summary.total_balance(self.list_accounts())

    def net_worth(self) -> Decimal:
        return summary.net_worth(self.list_accounts())

    def total_assets(self) -> Decimal:
        return summary.total_assets(self.list_accounts())

    def total_debt(self) -> Decimal:
        return summary.total_debt(self.list_accounts())

    def total_available_credit(self) -> Decimal:
        return summary.total_available_credit(self.list_accounts())

    def financial_health_score(self) -> Decimal:
        return summary.financial_health_score(self.list_accounts())

    def summarize(self) -> summary.LedgerSummary:
        """All aggregate figures computed from one snapshot of the accounts."""
        return summary.summarize_accounts(self.list_accounts())
