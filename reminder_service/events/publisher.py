"""Event publisher forwarding reminder events to the real-time layer.

Publishing is best-effort: failures are logged and never break the
operation that produced the event.
"""

import logging
from uuid import UUID

from reminder_service.events.types import ReminderEvent, ReminderEventType
from reminder_service.models.reminder import Reminder, serialize_reminder
from reminder_service.realtime.notifier import Notifier

logger = logging.getLogger(__name__)


class ReminderEventPublisher:
    """Publishes reminder lifecycle events through an injected Notifier."""

    def __init__(self, notifier: Notifier | None = None) -> None:
        self.notifier = notifier

    def publish(self, event: ReminderEvent) -> bool:
        """Publish an event.

        Returns:
            bool: True if handed to the notifier, False otherwise
        """
        if self.notifier is None:
            logger.debug("No notifier configured, event dropped", extra=event.to_log_dict())
            return False

        try:
            self.notifier.publish(event.owner_id, event.event_type.value, event.data)
        except Exception as e:
            logger.warning(
                "Event publish failed",
                extra={**event.to_log_dict(), "error": str(e)},
            )
            return False

        logger.debug("Event published", extra=event.to_log_dict())
        return True

    def reminder_created(self, reminder: Reminder) -> bool:
        return self._emit(ReminderEventType.NEW_REMINDER, reminder)

    def reminder_updated(self, reminder: Reminder) -> bool:
        return self._emit(ReminderEventType.REMINDER_UPDATED, reminder)

    def reminder_deleted(self, owner_id: UUID, reminder_id: UUID) -> bool:
        return self.publish(
            ReminderEvent(
                event_type=ReminderEventType.REMINDER_DELETED,
                owner_id=owner_id,
                data=str(reminder_id),
            )
        )

    def _emit(self, event_type: ReminderEventType, reminder: Reminder) -> bool:
        return self.publish(
            ReminderEvent(
                event_type=event_type,
                owner_id=reminder.owner_id,
                data=serialize_reminder(reminder),
            )
        )
