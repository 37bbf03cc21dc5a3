"""Utility for resolving account names to IDs."""

from spendtrack.domain.errors import ConflictError, NotFoundError
from spendtrack.domain.ledger import LedgerService

MIN_ID_PREFIX = 4


def resolve_account(ledger: LedgerService, account: str) -> str:
    """Resolve an account name, ID or ID prefix to an account ID.

    Lookup order: exact ID, exact name, then an unambiguous ID prefix of at
    least four characters (IDs are long UUIDs).

    Args:
        ledger: LedgerService instance
        account: Account name, full ID or ID prefix

    Returns:
        Account ID

    Raises:
        NotFoundError: If nothing matches
        ConflictError: If a name or prefix matches more than one account
    """
    account = account.strip()
    accounts = ledger.list_accounts()

    for acc in accounts:
        if acc.id == account:
            return acc.id

    by_name = [acc for acc in accounts if acc.name == account]
    if len(by_name) == 1:
        return by_name[0].id
    if len(by_name) > 1:
        raise ConflictError(f"Account name '{account}' is ambiguous; use the account ID")

    if len(account) >= MIN_ID_PREFIX:
        by_prefix = [acc for acc in accounts if acc.id.startswith(account)]
        if len(by_prefix) == 1:
            return by_prefix[0].id
        if len(by_prefix) > 1:
            raise ConflictError(f"Account ID prefix '{account}' is ambiguous")

    raise NotFoundError(f"Account '{account}' not found")
