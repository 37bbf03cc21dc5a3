"""Notification sink interface used by the scheduler.

The host application implements ``NotificationSink`` on top of whatever
delivery mechanism it has (OS notifications, email, a status bar). The
scheduler only ever calls these three methods.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from spendtrack.domain.entities import RecurringPayment, Transaction, TransactionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Rendered notification content."""

    title: str
    body: str
    badge: int = 0


def describe_batch(transactions: Sequence[Transaction]) -> Notification:
    """Render the single notification sent for one batch of processed payments."""
    count = len(transactions)
    if count == 1:
        body = f"1 recurring payment processed: {transactions[0].payee}"
    else:
        total = sum((t.amount for t in transactions), Decimal("0"))
        body = f"{count} recurring payments processed (Total: {total:,.2f})"
    return Notification(title="Daily Payments Processed", body=body, badge=count)


def describe_reminder(payment: RecurringPayment) -> Notification:
    sign = "-" if payment.type is TransactionType.EXPENSE else "+"
    return Notification(
        title="Payment Due Tomorrow",
        body=f"{payment.name} - {sign}{payment.amount:,.2f} due tomorrow",
    )


class NotificationSink(ABC):
    """Receiver for scheduler events."""

    @abstractmethod
    def payments_processed(self, transactions: Sequence[Transaction]) -> None:
        """Called once per scheduler run that created at least one transaction."""
        pass

    @abstractmethod
    def schedule_reminder(self, payment: RecurringPayment, remind_at: datetime) -> None:
        """Arrange for a reminder about ``payment`` to be shown at ``remind_at``."""
        pass

    @abstractmethod
    def clear_reminders(self) -> None:
        """Drop every pending reminder."""
        pass


class LoggingNotificationSink(NotificationSink):
    """Sink that writes notifications to the log."""

    def payments_processed(self, transactions: Sequence[Transaction]) -> None:
        notification = describe_batch(transactions)
        logger.info(f"{notification.title}: {notification.body}")

    def schedule_reminder(self, payment: RecurringPayment, remind_at: datetime) -> None:
        notification = describe_reminder(payment)
        logger.info(
            f"Reminder scheduled: {notification.body}",
            extra={"payment_id": payment.id, "remind_at": remind_at.isoformat()},
        )

    def clear_reminders(self) -> None:
        logger.debug("Cleared pending reminders")


class RecordingNotificationSink(NotificationSink):
    """Sink that keeps every event in memory for hosts that poll for them."""

    def __init__(self):
        self.batches: list[list[Transaction]] = []
        self.reminders: dict[str, datetime] = {}
        self.clear_count = 0

    @property
    def notifications(self) -> list[Notification]:
        return [describe_batch(batch) for batch in self.batches]

    def payments_processed(self, transactions: Sequence[Transaction]) -> None:
        self.batches.append(list(transactions))

    def schedule_reminder(self, payment: RecurringPayment, remind_at: datetime) -> None:
        self.reminders[payment.id] = remind_at

    def clear_reminders(self) -> None:
        self.reminders.clear()
        self.clear_count += 1
