"""Recurring payment scheduler.

Turns due recurring payment definitions into ledger transactions. Every
trigger the host has (a timer just after midnight, the app returning to the
foreground, an OS background wake, a manual "check now") calls the same
entry point, ``check_and_process_due_payments``, which is safe to call any
number of times: a definition is materialized at most once per calendar day
and at most once per due cycle.

Per-definition states::

    IDLE --(due day reached)--> DUE --(materialized)--> PROCESSED
      ^                                                     |
      +-----------------(next calendar day)-----------------+

A failed materialization leaves the definition DUE, so the next call retries
it. A definition that missed several cycles catches up one cycle per call
and at most one per day.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Callable, Optional

from spendtrack.domain.entities import RecurringPayment, Transaction
from spendtrack.domain.errors import (
    AlreadyProcessedTodayError,
    DomainError,
    ValidationError,
    already_processed_today,
)
from spendtrack.domain.ledger import LedgerService, new_transaction
from spendtrack.domain.notifications import LoggingNotificationSink, NotificationSink
from spendtrack.domain.recurring import RecurringPaymentService, is_due
from spendtrack.utils.dates import day_of, same_day, to_datetime

logger = logging.getLogger(__name__)

DEFAULT_CHECK_TIME = time(0, 1)
DEFAULT_REMINDER_LEAD = timedelta(days=1)
MAX_RECORDED_FAILURES = 100


class PaymentState(str, Enum):
    IDLE = "idle"
    DUE = "due"
    PROCESSED = "processed"


@dataclass(frozen=True)
class ProcessingFailure:
    """A materialization attempt that did not go through."""

    payment_id: str
    payment_name: str
    error: str
    occurred_at: datetime


def recurring_note(payment: RecurringPayment) -> str:
    return f"Recurring: {payment.notes}" if payment.notes else f"Recurring: {payment.name}"


class RecurringPaymentScheduler:
    """Materializes due recurring payments into the ledger.

    Construct one per application, ``configure`` it with the registry and the
    ledger, and optionally ``start`` the in-process daily timer. Hosts that
    have their own wake-up mechanism simply call
    ``check_and_process_due_payments`` from it.
    """

    def __init__(
        self,
        notification_sink: Optional[NotificationSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
        daily_check_time: time = DEFAULT_CHECK_TIME,
        reminder_lead: timedelta = DEFAULT_REMINDER_LEAD,
    ):
        """Initialize the scheduler.

        Args:
            notification_sink: Receiver for batch and reminder events
                (defaults to logging them)
            clock: Returns the current local time (defaults to datetime.now)
            daily_check_time: Local time of day the in-process timer fires
            reminder_lead: How long before a due date reminders are shown
        """
        self.notification_sink = notification_sink or LoggingNotificationSink()
        self.clock = clock or datetime.now
        self.daily_check_time = daily_check_time
        self.reminder_lead = reminder_lead
        self.failures: list[ProcessingFailure] = []
        self._registry: Optional[RecurringPaymentService] = None
        self._ledger: Optional[LedgerService] = None
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()

    def configure(self, registry: RecurringPaymentService, ledger: LedgerService) -> None:
        """Attach the registry and ledger the scheduler works on.

        Raises:
            ValueError: If the two services do not share one database; the
                scheduler relies on a single lock covering both.
        """
        if registry.db is not ledger.db:
            raise ValueError("Registry and ledger must share the same database")
        self._registry = registry
        self._ledger = ledger
        logger.debug("Scheduler configured")

    @property
    def is_configured(self) -> bool:
        return self._registry is not None and self._ledger is not None

    def _now(self, as_of: date | datetime | None) -> datetime:
        return to_datetime(as_of) if as_of is not None else self.clock()

    def _require_configured(self) -> tuple[RecurringPaymentService, LedgerService]:
        if not self.is_configured:
            raise RuntimeError("Scheduler is not configured; call configure() first")
        return self._registry, self._ledger

    # Queries

    def get_due_payments(self, as_of: date | datetime | None = None) -> list[RecurringPayment]:
        """Active payments due on or before ``as_of``'s day (empty if unconfigured)."""
        if not self.is_configured:
            return []
        return self._registry.get_due_payments(self._now(as_of))

    def payment_state(
        self, payment: RecurringPayment, as_of: date | datetime | None = None
    ) -> PaymentState:
        as_of = self._now(as_of)
        if same_day(payment.last_processed_date, as_of):
            return PaymentState.PROCESSED
        if is_due(payment, as_of):
            return PaymentState.DUE
        return PaymentState.IDLE

    # Processing

    def check_and_process_due_payments(
        self, as_of: date | datetime | None = None
    ) -> list[Transaction]:
        """Materialize every due payment not yet processed today.

        Args:
            as_of: Moment of the check (defaults to the clock). Created
                transactions are dated with it.

        Returns:
            Transactions created by this call, possibly empty
        """
        if not self.is_configured:
            logger.warning("Recurring payment check skipped: scheduler is not configured")
            return []

        as_of = self._now(as_of)
        due_payments = self._registry.get_due_payments(as_of)
        processed: list[Transaction] = []

        for payment in due_payments:
            try:
                transaction = self._materialize(payment.id, as_of)
            except AlreadyProcessedTodayError:
                logger.debug("Recurring payment already processed today", extra={"payment_id": payment.id})
                continue
            except DomainError as exc:
                self._record_failure(payment, exc, as_of)
                continue
            except Exception as exc:
                logger.error("Unexpected error processing recurring payment", exc_info=True)
                self._record_failure(payment, exc, as_of)
                continue
            if transaction is not None:
                processed.append(transaction)

        if processed:
            logger.info(f"Processed {len(processed)} recurring payment(s)", extra={"as_of": as_of.isoformat()})
            self._notify(processed)
        return processed

    def process_payment(self, payment_id: str, as_of: date | datetime | None = None) -> Transaction:
        """Materialize one due payment right away (a manual "process now").

        Raises:
            NotFoundError: If the payment or its account does not exist
            AlreadyProcessedTodayError: If it was already processed today
            ValidationError: If it is inactive or not due yet
            InvalidAmountError: If the stored amount is unusable
        """
        registry, _ = self._require_configured()
        registry.require_payment(payment_id)
        as_of = self._now(as_of)
        transaction = self._materialize(payment_id, as_of)
        if transaction is None:
            raise ValidationError(f"Recurring payment {payment_id} is not due")
        self._notify([transaction])
        return transaction

    def _materialize(self, payment_id: str, as_of: datetime) -> Optional[Transaction]:
        """Append one cycle of a payment to the ledger and advance its schedule.

        Runs in a single unit of work: the definition is re-read under the
        database lock, and the ledger append and schedule update commit
        together. Returns None when the payment is no longer due or no
        longer exists.
        """
        registry, ledger = self._require_configured()
        with registry.db.unit_of_work():
            payment = registry.get_payment(payment_id)
            if payment is None:
                logger.debug("Recurring payment removed before processing", extra={"payment_id": payment_id})
                return None
            if same_day(payment.last_processed_date, as_of):
                raise AlreadyProcessedTodayError(already_processed_today(payment.name, day_of(as_of)))
            if not is_due(payment, as_of):
                return None

            transaction = new_transaction(
                payment.account_id,
                payment.amount,
                payment.type,
                as_of,
                payment.payee,
                category=payment.category,
                notes=recurring_note(payment),
            )
            stored = ledger.add_transaction(transaction, payment.account_id)
            updated = registry.mark_processed(payment.id, as_of)

        logger.info(
            "Processed recurring payment",
            extra={
                "payment_id": payment.id,
                "transaction_id": stored.id,
                "next_due_date": updated.next_due_date.isoformat(),
            },
        )
        return stored

    def _record_failure(self, payment: RecurringPayment, error: Exception, as_of: datetime) -> None:
        failure = ProcessingFailure(
            payment_id=payment.id,
            payment_name=payment.name,
            error=str(error),
            occurred_at=as_of,
        )
        self.failures.append(failure)
        del self.failures[:-MAX_RECORDED_FAILURES]
        logger.warning(
            f"Recurring payment '{payment.name}' could not be processed: {error}",
            extra={"payment_id": payment.id},
        )

    def _notify(self, transactions: list[Transaction]) -> None:
        # Transactions are already committed at this point.
        try:
            self.notification_sink.payments_processed(transactions)
        except Exception:
            logger.error("Notification sink failed", exc_info=True)

    # Reminders

    def schedule_upcoming_reminders(self, now: date | datetime | None = None) -> int:
        """Replace pending reminders with one per active payment.

        A reminder is placed ``reminder_lead`` before each next due date,
        skipping reminders whose time has already passed.

        Returns:
            Number of reminders scheduled
        """
        if not self.is_configured:
            return 0
        now = self._now(now)
        self.notification_sink.clear_reminders()

        scheduled = 0
        for payment in self._registry.list_payments():
            if not payment.is_active:
                continue
            remind_at = payment.next_due_date - self.reminder_lead
            if remind_at <= now:
                continue
            self.notification_sink.schedule_reminder(payment, remind_at)
            scheduled += 1
        logger.debug(f"Scheduled {scheduled} reminder(s)")
        return scheduled

    # In-process daily timer

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def next_check_time(self, now: Optional[datetime] = None) -> datetime:
        """Next occurrence of ``daily_check_time`` strictly after ``now``."""
        now = now or self.clock()
        target = datetime.combine(now.date(), self.daily_check_time)
        if target <= now:
            target += timedelta(days=1)
        return target

    def start(self) -> None:
        """Arm the daily timer (re-arming it if it is already running)."""
        with self._timer_lock:
            self._arm_timer()

    def stop(self) -> None:
        """Cancel the daily timer."""
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
                logger.debug("Daily check stopped")

    def _arm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        now = self.clock()
        run_at = self.next_check_time(now)
        self._timer = threading.Timer((run_at - now).total_seconds(), self._run_daily_check)
        self._timer.daemon = True
        self._timer.start()
        logger.info(f"Next recurring payment check scheduled for {run_at.isoformat()}")

    def _run_daily_check(self) -> None:
        try:
            self.check_and_process_due_payments()
        except Exception:
            logger.error("Daily recurring payment check failed", exc_info=True)
        finally:
            with self._timer_lock:
                if self._timer is not None:
                    self._arm_timer()

    # Lifecycle hooks

    def handle_foreground(self, now: date | datetime | None = None) -> list[Transaction]:
        """App came to the foreground: check, refresh reminders, re-arm the timer."""
        processed = self.check_and_process_due_payments(now)
        self.schedule_upcoming_reminders(now)
        if self.is_running:
            self.start()
        return processed

    def handle_background_wake(self, now: date | datetime | None = None) -> list[Transaction]:
        """OS background wake: same as any other trigger."""
        return self.check_and_process_due_payments(now)
