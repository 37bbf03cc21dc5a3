"""Add transaction command."""

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.commands.account import format_money
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.entities import TransactionType
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([TransactionType.INCOME.value, TransactionType.EXPENSE.value]),
    default=TransactionType.EXPENSE.value,
    show_default=True,
)
@click.option("--amount", required=True, help="Positive amount (e.g., 123.45)")
@click.option(
    "--date",
    default="today",
    show_default=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--payee", required=True, help="Who was paid, or who paid you")
@click.option("--category", help="Category label (e.g., 'Food & Dining')")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    transaction_type: str,
    amount: str,
    date: str,
    payee: str,
    category: str | None,
    notes: str | None,
):
    """Add an income or expense transaction.

    Examples:
        spendtrack add --account Checking --amount 42.10 --payee "Grocery store" --category "Food & Dining"
        spendtrack add --account Checking --type income --amount 2500 --payee Employer --date 2024-01-31
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account)

    try:
        txn_date = parse_date(date)
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        txn = ledger.record_transaction(
            account_id,
            txn_amount,
            transaction_type,
            txn_date,
            payee,
            category=category,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    acc = ledger.require_account(account_id)
    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Account: {acc.name}")
    click.echo(f"  Date: {txn_date}")
    click.echo(f"  Amount: {format_money(txn.balance_effect)}")
    click.echo(f"  Balance: {format_money(acc.current_balance)}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
