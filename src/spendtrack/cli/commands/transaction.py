"""Transaction listing and deletion commands."""

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.commands.account import format_money
from spendtrack.cli.date_filters import period_options, resolve_cli_date_range
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.entities import TransactionType
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService


MIN_ID_PREFIX = 4


def resolve_transaction_or_exit(ctx, ledger: LedgerService, transaction: str, account_id: str | None):
    """Resolve a full transaction ID or a unique prefix of at least four characters."""
    found = ledger.get_transaction(transaction)
    if found is not None:
        return found

    matches = []
    if len(transaction) >= MIN_ID_PREFIX:
        matches = [
            t for t in ledger.list_transactions(account_id=account_id) if t.id.startswith(transaction)
        ]
    if len(matches) != 1:
        reason = "not found" if not matches else "is ambiguous"
        click.echo(f"Error: Transaction '{transaction}' {reason}", err=True)
        ctx.exit(1)
    return matches[0]


@click.group()
def transaction_group():
    """List and delete transactions."""
    pass


@transaction_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--type", "transaction_type", type=click.Choice([t.value for t in TransactionType]))
@click.option("--start-date", help="First day to include")
@click.option("--end-date", help="Last day to include")
@click.option("--search", help="Only transactions whose payee or notes contain this text")
@period_options
@click.pass_context
def list_transactions(
    ctx,
    account: str | None,
    transaction_type: str | None,
    start_date: str | None,
    end_date: str | None,
    search: str | None,
    **period_flags,
):
    """List transactions.

    Examples:
        spendtrack transaction list --account Checking --this-month
        spendtrack transaction list --type transfer --start-date 2024-01-01
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account) if account else None
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )

    transactions = ledger.list_transactions(
        account_id=account_id,
        start_date=start,
        end_date=end,
        transaction_type=TransactionType(transaction_type) if transaction_type else None,
    )
    if search:
        matching = {t.id for t in ledger.search_transactions(search)}
        transactions = [t for t in transactions if t.id in matching]

    if not transactions:
        click.echo("No transactions found.")
        return

    names = {acc.id: acc.name for acc in ledger.list_accounts()}
    for txn in transactions:
        click.echo(
            f"{txn.id[:8]} | {txn.date:%Y-%m-%d} | {names.get(txn.account_id, '?'):15s} | "
            f"{txn.type.label:8s} | {format_money(txn.balance_effect):>12s} | {txn.payee}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", metavar="TRANSACTION_ID")
@click.option("--account", help="Owning account name or ID (looked up when omitted)")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, account: str | None):
    """Delete a transaction.

    Deleting one side of a transfer also deletes the other side.
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account) if account else None
    txn = resolve_transaction_or_exit(ctx, ledger, transaction_id, account_id)
    transaction_id = txn.id
    account_id = account_id or txn.account_id

    try:
        ledger.delete_transaction(transaction_id, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
