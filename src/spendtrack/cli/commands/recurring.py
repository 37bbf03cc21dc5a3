"""Recurring payment commands."""

import click
from spendtrack.cli.account_resolution import resolve_account_or_exit
from spendtrack.cli.commands.account import format_money
from spendtrack.cli.error_handling import handle_domain_error
from spendtrack.domain.entities import Frequency, TransactionType
from spendtrack.domain.errors import DomainError
from spendtrack.domain.ledger import LedgerService
from spendtrack.domain.recurring import RecurringPaymentService
from spendtrack.domain.scheduler import RecurringPaymentScheduler
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date


def build_scheduler(ctx) -> RecurringPaymentScheduler:
    """Scheduler wired to the command's database."""
    db = ctx.obj["db"]
    scheduler = RecurringPaymentScheduler(notification_sink=ctx.obj.get("notification_sink"))
    scheduler.configure(RecurringPaymentService(db), LedgerService(db))
    return scheduler


def resolve_payment_or_exit(ctx, registry: RecurringPaymentService, payment: str) -> str:
    """Resolve a payment ID, ID prefix or exact name."""
    payments = registry.list_payments()
    matches = [p for p in payments if p.id == payment] or [p for p in payments if p.name == payment]
    if not matches and len(payment) >= 4:
        matches = [p for p in payments if p.id.startswith(payment)]
    if len(matches) != 1:
        reason = "not found" if not matches else "is ambiguous"
        click.echo(f"Error: Recurring payment '{payment}' {reason}", err=True)
        ctx.exit(1)
    return matches[0].id


@click.group()
def recurring_group():
    """Manage recurring payments."""
    pass


@recurring_group.command("add")
@click.argument("name")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Positive amount")
@click.option("--frequency", type=click.Choice([f.value for f in Frequency]), required=True)
@click.option("--next-due", required=True, help="First due date (YYYY-MM-DD or relative)")
@click.option("--payee", help="Payee (defaults to the payment name)")
@click.option(
    "--type",
    "transaction_type",
    type=click.Choice([TransactionType.INCOME.value, TransactionType.EXPENSE.value]),
    default=TransactionType.EXPENSE.value,
    show_default=True,
)
@click.option("--category", help="Category label")
@click.option("--notes", help="Notes")
@click.pass_context
def add_payment(
    ctx,
    name: str,
    account: str,
    amount: str,
    frequency: str,
    next_due: str,
    payee: str | None,
    transaction_type: str,
    category: str | None,
    notes: str | None,
):
    """Add a recurring payment.

    Examples:
        spendtrack recurring add "Streaming" --account Visa --amount 9.99 --frequency monthly --next-due 2024-01-15
    """
    db = ctx.obj["db"]
    ledger = LedgerService(db)
    registry = RecurringPaymentService(db)
    account_id = resolve_account_or_exit(ctx, ledger, account)

    try:
        payment_amount = parse_amount(amount)
        due = parse_date(next_due)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        payment = registry.add_payment(
            name=name,
            amount=payment_amount,
            account_id=account_id,
            frequency=frequency,
            next_due_date=due,
            payee=payee or name,
            transaction_type=transaction_type,
            category=category,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created recurring payment '{payment.name}' (ID: {payment.id})")
    click.echo(f"  {payment.frequency.label}, next due {payment.next_due_date:%Y-%m-%d}")


@recurring_group.command("list")
@click.option("--account", help="Only payments for this account")
@click.pass_context
def list_payments(ctx, account: str | None):
    """List recurring payments."""
    db = ctx.obj["db"]
    registry = RecurringPaymentService(db)
    ledger = LedgerService(db)

    if account:
        payments = registry.get_payments_for_account(resolve_account_or_exit(ctx, ledger, account))
    else:
        payments = registry.list_payments()

    if not payments:
        click.echo("No recurring payments found.")
        return

    for p in payments:
        status = "active" if p.is_active else "paused"
        last = f"{p.last_processed_date:%Y-%m-%d}" if p.last_processed_date else "never"
        click.echo(
            f"{p.id[:8]} | {p.name:20s} | {format_money(p.amount):>10s} | {p.frequency.label:9s} | "
            f"next {p.next_due_date:%Y-%m-%d} | last {last} | {status}"
        )


@recurring_group.command("toggle")
@click.argument("payment")
@click.pass_context
def toggle_payment(ctx, payment: str):
    """Pause or resume a recurring payment."""
    registry = RecurringPaymentService(ctx.obj["db"])
    payment_id = resolve_payment_or_exit(ctx, registry, payment)
    updated = registry.toggle_active(payment_id)
    click.echo(f"'{updated.name}' is now {'active' if updated.is_active else 'paused'}")


@recurring_group.command("delete")
@click.argument("payment")
@click.pass_context
def delete_payment(ctx, payment: str):
    """Delete a recurring payment."""
    registry = RecurringPaymentService(ctx.obj["db"])
    payment_id = resolve_payment_or_exit(ctx, registry, payment)
    try:
        registry.delete_payment(payment_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted recurring payment {payment_id}")


@recurring_group.command("due")
@click.option("--as-of", help="Day to check (defaults to today)")
@click.pass_context
def due_payments(ctx, as_of: str | None):
    """Show payments that are due."""
    scheduler = build_scheduler(ctx)
    try:
        when = parse_date(as_of) if as_of else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    payments = scheduler.get_due_payments(when)
    if not payments:
        click.echo("No payments due.")
        return
    for p in payments:
        state = scheduler.payment_state(p, when)
        click.echo(f"{p.id[:8]} | {p.name:20s} | {format_money(p.amount):>10s} | due {p.next_due_date:%Y-%m-%d} | {state.value}")


@recurring_group.command("check")
@click.option("--as-of", help="Day to process (defaults to now)")
@click.pass_context
def check_payments(ctx, as_of: str | None):
    """Process every due recurring payment.

    Safe to run any number of times: a payment is processed at most once per day.
    """
    scheduler = build_scheduler(ctx)
    try:
        when = parse_date(as_of) if as_of else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    processed = scheduler.check_and_process_due_payments(when)
    if processed:
        click.echo(f"Processed {len(processed)} recurring payment(s):")
        for txn in processed:
            click.echo(f"  {txn.payee}: {format_money(txn.balance_effect)}")
    else:
        click.echo("No payments processed.")

    for failure in scheduler.failures:
        click.echo(f"Failed: {failure.payment_name}: {failure.error}", err=True)
    if scheduler.failures:
        ctx.exit(1)


@recurring_group.command("reminders")
@click.pass_context
def schedule_reminders(ctx):
    """Schedule reminders for upcoming payments."""
    scheduler = build_scheduler(ctx)
    count = scheduler.schedule_upcoming_reminders()
    click.echo(f"Scheduled {count} reminder(s)")


def register_commands(cli):
    """Register recurring payment commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
