"""Transfer command."""

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.commands.account import format_money
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date


@click.command("transfer")
@click.option("--from", "from_account", required=True, help="Source account name or ID")
@click.option("--to", "to_account", required=True, help="Target account name or ID")
@click.option("--amount", required=True, help="Positive amount to move")
@click.option("--date", default="today", show_default=True, help="Transfer date")
@click.option("--notes", help="Notes stored on both sides of the transfer")
@click.pass_context
def transfer(ctx, from_account: str, to_account: str, amount: str, date: str, notes: str | None):
    """Move money between two accounts.

    Examples:
        spendtrack transfer --from Checking --to Savings --amount 200
        spendtrack transfer --from Checking --to Visa --amount 320.50 --notes "Card payment"
    """
    ledger = LedgerService(ctx.obj["db"])
    from_id = resolve_account_or_exit(ctx, ledger, from_account)
    to_id = resolve_account_or_exit(ctx, ledger, to_account)

    try:
        transfer_amount = parse_amount(amount)
        transfer_date = parse_date(date)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        source, target = ledger.add_transfer(transfer_amount, from_id, to_id, transfer_date, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transferred {format_money(source.amount)}")
    for txn in (source, target):
        acc = ledger.require_account(txn.account_id)
        click.echo(f"  {acc.name}: {format_money(acc.current_balance)} ({txn.payee})")


def register_commands(cli):
    """Register transfer command with main CLI."""
    cli.add_command(transfer)
