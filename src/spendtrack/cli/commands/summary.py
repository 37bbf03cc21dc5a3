"""Summary command."""

import click
from spendtrack.cli.commands.account import format_money
from spendtrack.domain.ledger import LedgerService


@click.command("summary")
@click.pass_context
def summary(ctx):
    """Show net worth, assets, debt and available credit."""
    ledger = LedgerService(ctx.obj["db"])
    figures = ledger.summarize()

    click.echo(f"Accounts:          {figures.account_count} ({figures.transaction_count} transactions)")
    click.echo(f"Net worth:         {format_money(figures.net_worth)}")
    click.echo(f"Total assets:      {format_money(figures.total_assets)}")
    click.echo(f"Total debt:        {format_money(figures.total_debt)}")
    click.echo(f"Available credit:  {format_money(figures.total_available_credit)}")
    click.echo(f"Health score:      {figures.financial_health_score}")


def register_commands(cli):
    """Register summary command with main CLI."""
    cli.add_command(summary)
