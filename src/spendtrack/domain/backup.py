"""Whole-ledger JSON backups and CSV export of transactions."""

import csv
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, TextIO

from spendtrack.domain.entities import (
    Account,
    AccountType,
    Frequency,
    RecurringPayment,
    Transaction,
    TransactionType,
)
from spendtrack.domain.errors import ValidationError
from spendtrack.domain.ledger import (
    LedgerService,
    normalize_amount,
    normalize_balance,
    recalculate_balance,
)
from spendtrack.domain.recurring import RecurringPaymentService
from spendtrack.utils.dates import day_of

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
CSV_HEADER = ["AccountName", "TransactionType", "Payee", "Category", "Date", "Amount"]


def _optional_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def transaction_to_dict(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": transaction.id,
        "account_id": transaction.account_id,
        "amount": str(transaction.amount),
        "type": transaction.type.value,
        "date": transaction.date.isoformat(),
        "payee": transaction.payee,
        "category": transaction.category,
        "notes": transaction.notes,
        "target_account_id": transaction.target_account_id,
        "is_transfer_source": transaction.is_transfer_source,
        "linked_transaction_id": transaction.linked_transaction_id,
    }


def transaction_from_dict(data: dict[str, Any]) -> Transaction:
    return Transaction(
        id=data["id"],
        account_id=data["account_id"],
        amount=Decimal(data["amount"]),
        type=TransactionType(data["type"]),
        date=datetime.fromisoformat(data["date"]),
        payee=data["payee"],
        category=data["category"],
        notes=data.get("notes"),
        target_account_id=data.get("target_account_id"),
        is_transfer_source=data.get("is_transfer_source"),
        linked_transaction_id=data.get("linked_transaction_id"),
    )


def account_to_dict(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "starting_balance": str(account.starting_balance),
        "current_balance": str(account.current_balance),
        "account_type": account.account_type.value,
        "created_at": account.created_at.isoformat(),
        "icon": account.icon,
        "color": account.color,
        "transactions": [transaction_to_dict(t) for t in account.transactions],
    }


def account_from_dict(data: dict[str, Any]) -> Account:
    """Rebuild an Account; the stored current balance is recomputed, not trusted."""
    account = Account(
        id=data["id"],
        name=data["name"],
        starting_balance=Decimal(data["starting_balance"]),
        current_balance=Decimal("0"),
        account_type=AccountType(data["account_type"]),
        created_at=datetime.fromisoformat(data["created_at"]),
        icon=data.get("icon"),
        color=data.get("color"),
        transactions=tuple(transaction_from_dict(t) for t in data.get("transactions", [])),
    )
    return replace(account, current_balance=recalculate_balance(account))


def recurring_payment_to_dict(payment: RecurringPayment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "name": payment.name,
        "amount": str(payment.amount),
        "account_id": payment.account_id,
        "frequency": payment.frequency.value,
        "next_due_date": payment.next_due_date.isoformat(),
        "payee": payment.payee,
        "type": payment.type.value,
        "created_at": payment.created_at.isoformat(),
        "category": payment.category,
        "category_icon": payment.category_icon,
        "notes": payment.notes,
        "is_active": payment.is_active,
        "last_processed_date": (
            payment.last_processed_date.isoformat() if payment.last_processed_date else None
        ),
    }


def recurring_payment_from_dict(data: dict[str, Any]) -> RecurringPayment:
    return RecurringPayment(
        id=data["id"],
        name=data["name"],
        amount=Decimal(data["amount"]),
        account_id=data["account_id"],
        frequency=Frequency(data["frequency"]),
        next_due_date=datetime.fromisoformat(data["next_due_date"]),
        payee=data["payee"],
        type=TransactionType(data["type"]),
        created_at=datetime.fromisoformat(data["created_at"]),
        category=data["category"],
        category_icon=data.get("category_icon"),
        notes=data.get("notes"),
        is_active=bool(data.get("is_active", True)),
        last_processed_date=_optional_datetime(data.get("last_processed_date")),
    )


@dataclass(frozen=True)
class LedgerBackup:
    """Snapshot of every account, transaction and recurring payment."""

    accounts: list[Account]
    recurring_payments: list[RecurringPayment]
    backup_date: datetime
    version: str = BACKUP_VERSION
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "backup_date": self.backup_date.isoformat(),
            "accounts": [account_to_dict(a) for a in self.accounts],
            "recurring_payments": [recurring_payment_to_dict(p) for p in self.recurring_payments],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerBackup":
        """Parse a backup dictionary.

        Raises:
            ValidationError: If the data is malformed or from an unknown version
        """
        try:
            version = data["version"]
            if version != BACKUP_VERSION:
                raise ValidationError(f"Unsupported backup version '{version}'")
            return cls(
                accounts=[account_from_dict(a) for a in data["accounts"]],
                recurring_payments=[recurring_payment_from_dict(p) for p in data.get("recurring_payments", [])],
                backup_date=datetime.fromisoformat(data["backup_date"]),
                version=version,
                metadata=dict(data.get("metadata") or {}),
            )
        except ValidationError:
            raise
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise ValidationError(f"Malformed backup: {e!r}")

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "LedgerBackup":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Backup is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ValidationError("Backup must be a JSON object")
        return cls.from_dict(data)


def create_backup(
    ledger: LedgerService,
    registry: RecurringPaymentService,
    now: Optional[datetime] = None,
) -> LedgerBackup:
    """Take a consistent snapshot of the ledger and the registry."""
    with ledger.db.unit_of_work():
        accounts = ledger.list_accounts()
        payments = registry.list_payments()
    return LedgerBackup(
        accounts=accounts,
        recurring_payments=payments,
        backup_date=now or datetime.now(),
    )


def _check_transfer(
    transaction: Transaction,
    owner_id: str,
    transactions: dict[str, tuple[str, Transaction]],
) -> None:
    if transaction.is_transfer_source is None:
        raise ValidationError(f"Transfer {transaction.id} has no direction")
    linked = transactions.get(transaction.linked_transaction_id or "")
    if linked is None:
        raise ValidationError(f"Transfer {transaction.id} has no linked counterpart")
    sibling_owner, sibling = linked
    if (
        sibling_owner == owner_id
        or not sibling.is_transfer
        or sibling.linked_transaction_id != transaction.id
        or sibling.is_transfer_source is None
        or sibling.is_transfer_source == transaction.is_transfer_source
        or sibling.amount != transaction.amount
    ):
        raise ValidationError(f"Transfer {transaction.id} does not match its counterpart {sibling.id}")


def validate_backup(backup: LedgerBackup) -> None:
    """Check a backup against the ledger's invariants before it is restored.

    Raises:
        ValidationError: On duplicate ids, unusable amounts, or a transfer
            without a matching counterpart in another account
    """
    account_ids: set[str] = set()
    transactions: dict[str, tuple[str, Transaction]] = {}
    for account in backup.accounts:
        if account.id in account_ids:
            raise ValidationError(f"Duplicate account id {account.id}")
        account_ids.add(account.id)
        normalize_balance(account.starting_balance)
        for transaction in account.transactions:
            if transaction.id in transactions:
                raise ValidationError(f"Duplicate transaction id {transaction.id}")
            normalize_amount(transaction.amount)
            transactions[transaction.id] = (account.id, transaction)

    for owner_id, transaction in transactions.values():
        if transaction.is_transfer:
            _check_transfer(transaction, owner_id, transactions)

    payment_ids: set[str] = set()
    for payment in backup.recurring_payments:
        if payment.id in payment_ids:
            raise ValidationError(f"Duplicate recurring payment id {payment.id}")
        payment_ids.add(payment.id)
        normalize_amount(payment.amount)
        if payment.type is TransactionType.TRANSFER:
            raise ValidationError(f"Recurring payment {payment.id} cannot be a transfer")


def restore_backup(
    backup: LedgerBackup, ledger: LedgerService, registry: RecurringPaymentService
) -> None:
    """Replace everything in the database with the contents of ``backup``.

    The backup is validated first; nothing is touched if it is rejected.
    Runs as one unit of work; balances are recomputed from each account's
    transactions.

    Raises:
        ValidationError: If the backup breaks a ledger invariant
    """
    if registry.db is not ledger.db:
        raise ValueError("Registry and ledger must share the same database")
    validate_backup(backup)
    db = ledger.db
    with db.unit_of_work():
        db.clear()
        for account in backup.accounts:
            db.add_account(replace(account, current_balance=recalculate_balance(account)))
            for transaction in account.transactions:
                db.add_transaction(replace(transaction, account_id=account.id))
        for payment in backup.recurring_payments:
            db.add_recurring_payment(payment)
    logger.info(
        "Restored backup",
        extra={"accounts": len(backup.accounts), "recurring_payments": len(backup.recurring_payments)},
    )


def export_transactions_csv(
    ledger: LedgerService,
    stream: TextIO,
    account_ids: Optional[Iterable[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> int:
    """Write transactions as CSV, newest first within each account.

    Args:
        ledger: Ledger to read from
        stream: Text stream to write to
        account_ids: Accounts to include (all accounts when None)
        start_date: First day to include
        end_date: Last day to include

    Returns:
        Number of transaction rows written
    """
    wanted = set(account_ids) if account_ids is not None else None
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)

    rows = 0
    for account in ledger.list_accounts():
        if wanted is not None and account.id not in wanted:
            continue
        selected = [
            t
            for t in account.transactions
            if (start_date is None or day_of(t.date) >= start_date)
            and (end_date is None or day_of(t.date) <= end_date)
        ]
        for transaction in sorted(selected, key=lambda t: t.date, reverse=True):
            writer.writerow(
                [
                    account.name,
                    transaction.type.label,
                    transaction.payee,
                    transaction.category,
                    day_of(transaction.date).isoformat(),
                    f"{transaction.amount:.2f}",
                ]
            )
            rows += 1
    return rows
