"""Backup, restore and export commands."""

import sys
from pathlib import Path

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.date_filters import period_options, resolve_cli_date_range
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.backup import LedgerBackup, create_backup, export_transactions_csv, restore_backup
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService
from spendtrack.domain.recurring import RecurringPaymentService


@click.group()
def backup_group():
    """Save and restore the whole ledger as JSON."""
    pass


@backup_group.command("save")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def save_backup(ctx, path: str):
    """Write a JSON backup to PATH."""
    db = ctx.obj["db"]
    backup = create_backup(LedgerService(db), RecurringPaymentService(db))
    Path(path).write_text(backup.to_json(), encoding="utf-8")
    click.echo(
        f"Saved {len(backup.accounts)} account(s) and "
        f"{len(backup.recurring_payments)} recurring payment(s) to {path}"
    )


@backup_group.command("restore")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def load_backup(ctx, path: str, yes: bool):
    """Replace all data with the backup in PATH."""
    db = ctx.obj["db"]
    try:
        backup = LedgerBackup.from_json(Path(path).read_text(encoding="utf-8"))
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm("This replaces all existing data. Continue?"):
        click.echo("Restore cancelled.")
        return

    try:
        restore_backup(backup, LedgerService(db), RecurringPaymentService(db))
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Restored backup from {backup.backup_date:%Y-%m-%d %H:%M}")


@click.group()
def export_group():
    """Export ledger data."""
    pass


@export_group.command("csv")
@click.option("--account", "accounts", multiple=True, help="Account name or ID (repeatable)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="CSV file (defaults to stdout)")
@click.option("--start-date", help="First day to include")
@click.option("--end-date", help="Last day to include")
@period_options
@click.pass_context
def export_csv(ctx, accounts: tuple[str, ...], output: str | None, start_date, end_date, **period_flags):
    """Export transactions as CSV.

    Examples:
        spendtrack export csv --this-year -o transactions.csv
        spendtrack export csv --account Checking --start-date 2024-01-01
    """
    ledger = LedgerService(ctx.obj["db"])
    account_ids = [resolve_account_or_exit(ctx, ledger, a) for a in accounts] or None
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )

    if output:
        with open(output, "w", newline="", encoding="utf-8") as stream:
            rows = export_transactions_csv(ledger, stream, account_ids, start, end)
        click.echo(f"Exported {rows} transaction(s) to {output}")
    else:
        export_transactions_csv(ledger, sys.stdout, account_ids, start, end)


def register_commands(cli):
    """Register backup and export commands with main CLI."""
    cli.add_command(backup_group, name="backup")
    cli.add_command(export_group, name="export")
