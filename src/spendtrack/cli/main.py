"""Main CLI entry point."""

import logging

import click
from spendtrack.database.factories import create_sqlite_database

# Import and register all commands at module level
from spendtrack.cli.commands import (
    account,
    add,
    backup,
    recurring,
    summary,
    transaction,
    transfer,
)
from spendtrack.domain.notifications import LoggingNotificationSink


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides SPENDTRACK_DB_PATH environment variable)",
    envvar="SPENDTRACK_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log scheduler and ledger activity")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Spendtrack - personal finance ledger.

    Keep accounts, income, expenses and transfers with running balances,
    and let recurring payments post themselves when they come due.
    """
    ctx.ensure_object(dict)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj.setdefault("notification_sink", LoggingNotificationSink())
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
transfer.register_commands(cli)
transaction.register_commands(cli)
recurring.register_commands(cli)
summary.register_commands(cli)
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
