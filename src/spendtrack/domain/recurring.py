"""Recurring payment registry."""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from spendtrack.database.base import Database
from spendtrack.domain.entities import (
    DEFAULT_CATEGORY,
    Frequency,
    RecurringPayment,
    TransactionType,
)
from spendtrack.domain.errors import NotFoundError, ValidationError, payment_not_found
from spendtrack.domain.ledger import new_id, normalize_amount
from spendtrack.utils.dates import day_of, to_datetime

logger = logging.getLogger(__name__)


def _payment_type(transaction_type) -> TransactionType:
    try:
        transaction_type = TransactionType(transaction_type)
    except ValueError:
        raise ValidationError(f"Unknown transaction type '{transaction_type}'")
    if transaction_type is TransactionType.TRANSFER:
        raise ValidationError("Recurring payments must be income or expense")
    return transaction_type


def _frequency(frequency) -> Frequency:
    try:
        return Frequency(frequency)
    except ValueError:
        choices = ", ".join(f.value for f in Frequency)
        raise ValidationError(f"Unknown frequency '{frequency}'. Choose one of: {choices}")


def is_due(payment: RecurringPayment, as_of: date | datetime) -> bool:
    """True when the payment is active and its due day is on or before ``as_of``'s day."""
    return payment.is_active and day_of(payment.next_due_date) <= day_of(as_of)


class RecurringPaymentService:
    """Service for managing recurring payment definitions.

    Schedule bookkeeping (``next_due_date`` advancing and
    ``last_processed_date``) changes only through ``mark_processed``, which
    the scheduler calls after a successful materialization.
    """

    def __init__(self, db: Database):
        """Initialize recurring payment service.

        Args:
            db: Database instance (the same one the ledger uses)
        """
        self.db = db

    def add_payment(
        self,
        name: str,
        amount,
        account_id: str,
        frequency: Frequency | str,
        next_due_date: date | datetime,
        payee: str,
        transaction_type: TransactionType | str = TransactionType.EXPENSE,
        category: Optional[str] = None,
        category_icon: Optional[str] = None,
        notes: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> RecurringPayment:
        """Create a recurring payment definition.

        The account is not checked: a definition whose account is missing
        fails at materialization time and stays due.

        Returns:
            The created RecurringPayment (active, never processed)

        Raises:
            ValidationError: If the name is empty, or the frequency or type is invalid
            InvalidAmountError: If the amount is not positive and finite
        """
        if not name or not name.strip():
            raise ValidationError("Recurring payment name cannot be empty")
        payment = RecurringPayment(
            id=new_id(),
            name=name.strip(),
            amount=normalize_amount(amount),
            account_id=account_id,
            frequency=_frequency(frequency),
            next_due_date=to_datetime(next_due_date),
            payee=payee,
            type=_payment_type(transaction_type),
            created_at=created_at or datetime.now(),
            category=category or DEFAULT_CATEGORY,
            category_icon=category_icon,
            notes=notes,
        )
        self.db.add_recurring_payment(payment)
        logger.info(
            "Added recurring payment",
            extra={"payment_id": payment.id, "frequency": payment.frequency.value},
        )
        return payment

    def get_payment(self, payment_id: str) -> Optional[RecurringPayment]:
        """Get recurring payment by ID, or None if not found."""
        return self.db.get_recurring_payment(payment_id)

    def require_payment(self, payment_id: str) -> RecurringPayment:
        """Get recurring payment by ID.

        Raises:
            NotFoundError: If the payment does not exist
        """
        payment = self.db.get_recurring_payment(payment_id)
        if payment is None:
            raise NotFoundError(payment_not_found(payment_id))
        return payment

    def list_payments(self) -> list[RecurringPayment]:
        return self.db.list_recurring_payments()

    def get_payments_for_account(self, account_id: str) -> list[RecurringPayment]:
        return self.db.list_recurring_payments(account_id=account_id)

    def update_payment(self, payment: RecurringPayment) -> RecurringPayment:
        """Replace the template, frequency, due date and active flag of a payment.

        ``last_processed_date`` is kept from the stored record.

        Raises:
            NotFoundError: If the payment does not exist
            ValidationError / InvalidAmountError: If the new values are invalid
        """
        with self.db.unit_of_work():
            existing = self.require_payment(payment.id)
            if not payment.name or not payment.name.strip():
                raise ValidationError("Recurring payment name cannot be empty")
            updated = replace(
                payment,
                name=payment.name.strip(),
                amount=normalize_amount(payment.amount),
                frequency=_frequency(payment.frequency),
                type=_payment_type(payment.type),
                next_due_date=to_datetime(payment.next_due_date),
                created_at=existing.created_at,
                last_processed_date=existing.last_processed_date,
            )
            self.db.update_recurring_payment(updated)
        return updated

    def delete_payment(self, payment_id: str) -> None:
        """Delete a recurring payment.

        Raises:
            NotFoundError: If the payment does not exist
        """
        self.db.delete_recurring_payment(payment_id)
        logger.info("Deleted recurring payment", extra={"payment_id": payment_id})

    def toggle_active(self, payment_id: str) -> RecurringPayment:
        """Flip the active flag of a payment and return the updated record."""
        with self.db.unit_of_work():
            payment = self.require_payment(payment_id)
            updated = replace(payment, is_active=not payment.is_active)
            self.db.update_recurring_payment(updated)
        return updated

    def get_due_payments(self, as_of: date | datetime) -> list[RecurringPayment]:
        """Active payments whose due day is on or before ``as_of``'s day.

        The comparison is by calendar day, so a payment due at any time on a
        day is due from the start of that day until it is processed.
        """
        return [p for p in self.db.list_recurring_payments(active_only=True) if is_due(p, as_of)]

    def mark_processed(self, payment_id: str, processed_at: datetime) -> RecurringPayment:
        """Record a materialization and advance the due date by one cycle.

        The next due date is computed from the previous due date, never from
        ``processed_at``, so the cadence stays on its calendar grid.
        """
        with self.db.unit_of_work():
            payment = self.require_payment(payment_id)
            updated = replace(
                payment,
                last_processed_date=to_datetime(processed_at),
                next_due_date=payment.frequency.advance(payment.next_due_date),
            )
            self.db.update_recurring_payment(updated)
        return updated
