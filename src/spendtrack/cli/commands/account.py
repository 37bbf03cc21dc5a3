"""Account management commands."""

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.entities import AccountType
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService
from spendtrack.utils.amount_parser import parse_balance


def format_money(amount) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--starting-balance", default="0", help="Opening balance (e.g., 1500.00)")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType]),
    default=AccountType.DEBIT.value,
    show_default=True,
    help="debit for cash/checking/savings, credit for cards and loans",
)
@click.option("--icon", help="Icon label")
@click.option("--color", help="Color label")
@click.pass_context
def create_account(ctx, name: str, starting_balance: str, account_type: str, icon: str | None, color: str | None):
    """Create a new account.

    For credit accounts enter the amount owed as a positive number; it is
    stored as a negative balance.

    Examples:
        spendtrack account create "Checking" --starting-balance 1500
        spendtrack account create "Visa" --type credit --starting-balance 320.50
    """
    ledger = LedgerService(ctx.obj["db"])

    try:
        balance = parse_balance(starting_balance)
        account = ledger.create_account(name=name, starting_balance=balance, account_type=account_type, icon=icon, color=color)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{account.name}' (ID: {account.id})")
    click.echo(f"Balance: {format_money(account.current_balance)}")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts with their balances."""
    ledger = LedgerService(ctx.obj["db"])

    accounts = ledger.list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        click.echo(
            f"{acc.id[:8]} | {acc.name:20s} | {acc.account_type.label:6s} | "
            f"{format_money(acc.current_balance):>14s} | {len(acc.transactions)} transactions"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show an account and its transactions.

    ACCOUNT can be an account name or ID.
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account)
    acc = ledger.require_account(account_id)

    click.echo(f"{acc.name} ({acc.account_type.label})")
    click.echo(f"  ID: {acc.id}")
    click.echo(f"  Starting balance: {format_money(acc.starting_balance)}")
    click.echo(f"  Current balance:  {format_money(acc.current_balance)}")
    if acc.is_in_debt:
        click.echo(f"  Debt: {format_money(acc.debt_amount)}")

    if not acc.transactions:
        click.echo("\nNo transactions.")
        return
    click.echo("")
    for txn in acc.transactions:
        click.echo(
            f"{txn.date:%Y-%m-%d} | {txn.type.label:8s} | {format_money(txn.balance_effect):>12s} | "
            f"{txn.payee} [{txn.category}] ({txn.id[:8]})"
        )


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    Examples:
        spendtrack account rename "Checking" "Main Checking"
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account)

    try:
        ledger.update_account(account_id, name=new_name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Renamed account to '{new_name}'")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    The account can only be deleted if it has no transactions.
    """
    ledger = LedgerService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, ledger, account)
    acc = ledger.require_account(account_id)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{acc.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        ledger.delete_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{acc.name}'")


@account_group.command("merge")
@click.argument("source", metavar="SOURCE")
@click.argument("target", metavar="TARGET")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def merge_accounts(ctx, source: str, target: str, yes: bool) -> None:
    """Merge SOURCE into TARGET and delete SOURCE.

    Both accounts must have the same type. Transactions, the starting
    balance and recurring payments of SOURCE move to TARGET.

    Examples:
        spendtrack account merge "Old Checking" Checking --yes
    """
    ledger = LedgerService(ctx.obj["db"])
    source_id = resolve_account_or_exit(ctx, ledger, source)
    target_id = resolve_account_or_exit(ctx, ledger, target)
    source_acc = ledger.require_account(source_id)
    target_acc = ledger.require_account(target_id)

    if not yes and not click.confirm(
        f"Merge '{source_acc.name}' into '{target_acc.name}'? '{source_acc.name}' will be deleted."
    ):
        click.echo("Merge cancelled.")
        return

    try:
        merged = ledger.merge_accounts(source_id, target_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Merged '{source_acc.name}' into '{merged.name}' "
        f"(balance {format_money(merged.current_balance)})"
    )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
