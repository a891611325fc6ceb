"""Error taxonomy for reminder operations.

ValidationError, NotFoundError and AuthorizationError are surfaced to
callers. DeliveryChannelError and SchedulerTickError are raised and
caught internally by the dispatcher and scheduler.
"""


class ReminderError(Exception):
    """Base class for reminder errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReminderError):
    """Input rejected before persistence."""


class NotFoundError(ReminderError):
    """Reminder or owner does not exist."""


class AuthorizationError(ReminderError):
    """Actor is not allowed to act on the reminder."""


class DeliveryChannelError(ReminderError):
    """A single channel send failed."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(f"{channel}: {message}")
        self.channel = channel


class SchedulerTickError(ReminderError):
    """The due-reminder query of a tick failed."""
