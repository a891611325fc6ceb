"""Time source used by the service, dispatcher and scheduler.

All timestamps are stored as naive UTC datetimes.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Clock(ABC):
    """Abstract source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current naive UTC time."""
        pass


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return utc_now()
