"""Shared pytest fixtures for spendtrack tests."""

import tempfile
import os
from datetime import datetime
from decimal import Decimal
import pytest

from spendtrack.database.factories import create_sqlite_database
from spendtrack.domain.entities import AccountType
from spendtrack.domain.ledger import LedgerService
from spendtrack.domain.notifications import RecordingNotificationSink
from spendtrack.domain.recurring import RecurringPaymentService
from spendtrack.domain.scheduler import RecurringPaymentScheduler


class FixedClock:
    """Callable clock that tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def ledger(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def registry(temp_db):
    """Create a RecurringPaymentService with a temporary database."""
    return RecurringPaymentService(temp_db)


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-15 09:00 local time."""
    return FixedClock(datetime(2024, 1, 15, 9, 0))


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def scheduler(registry, ledger, sink, clock):
    """Configured scheduler with a recording sink and a fixed clock."""
    scheduler = RecurringPaymentScheduler(notification_sink=sink, clock=clock)
    scheduler.configure(registry, ledger)
    yield scheduler
    scheduler.stop()


@pytest.fixture
def checking(ledger):
    """Debit account opened with 1000.00."""
    return ledger.create_account(name="Checking", starting_balance=Decimal("1000"))


@pytest.fixture
def visa(ledger):
    """Credit account opened with 500.00 owed."""
    return ledger.create_account(
        name="Visa", starting_balance=Decimal("500"), account_type=AccountType.CREDIT
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
