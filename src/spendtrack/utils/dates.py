"""Calendar-day helpers shared by the ledger and the scheduler.

All instants are naive local datetimes. A plain ``date`` is read as local
midnight of that day.
"""

from datetime import date, datetime, time


def to_datetime(value: date | datetime) -> datetime:
    """Return ``value`` as a datetime, promoting a date to midnight."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def day_of(value: date | datetime) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def same_day(first: date | datetime | None, second: date | datetime | None) -> bool:
    """True when both values fall on the same calendar day."""
    if first is None or second is None:
        return False
    return day_of(first) == day_of(second)


def start_of_day(value: date | datetime) -> datetime:
    return datetime.combine(day_of(value), time.min)
