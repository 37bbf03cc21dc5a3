"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested account, transaction or recurring payment does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as an ambiguous account name."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class InvalidAmountError(ValidationError):
    """Amount is non-positive or not a finite number."""


class TransferAccountMismatchError(ValidationError):
    """Transfer source equals target, or one of the accounts is missing."""


class AlreadyProcessedTodayError(DomainError):
    """Recurring payment was already materialized on this calendar day.

    This is a no-op signal rather than a failure: the scheduler skips the
    payment silently when it sees it.
    """


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: str, account_id: str | None = None) -> str:
    """Return message for missing transaction, optionally scoped to an account."""
    if account_id is None:
        return f"Transaction {transaction_id} not found"
    return f"Transaction {transaction_id} not found in account {account_id}"


def payment_not_found(payment_id: str) -> str:
    """Return message for missing recurring payment."""
    return f"Recurring payment {payment_id} not found"


def invalid_amount(amount) -> str:
    """Return message for a non-positive or non-finite amount."""
    return f"Amount must be a positive, finite number (got {amount})"


def transfer_same_account(account_id: str) -> str:
    """Return message for a transfer whose source and target are equal."""
    return f"Cannot transfer from account {account_id} to itself"


def account_delete_blocked(account_id: str, transaction_count: int) -> str:
    """Return message when account still owns transactions."""
    return (
        f"Cannot delete account {account_id}: it has "
        f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}. "
        "Please move or delete them first."
    )


def already_processed_today(name: str, day) -> str:
    """Return message for a recurring payment already processed on a day."""
    return f"Recurring payment '{name}' was already processed on {day}"
