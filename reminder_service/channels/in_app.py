"""In-app channel: publish to the recipient's real-time topic."""

import logging

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.events.types import ReminderEventType
from reminder_service.models.notification import NotificationChannel
from reminder_service.realtime.notifier import Notifier, topic_for

logger = logging.getLogger(__name__)


class InAppSender(ChannelSender):
    """Pushes a reminderTriggered event to any connected client of the owner."""

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.IN_APP

    def address_of(self, recipient: Recipient) -> str | None:
        return topic_for(recipient.user_id)

    def send(self, recipient: Recipient, payload: ChannelPayload) -> bool:
        self.notifier.publish(
            recipient.user_id,
            ReminderEventType.REMINDER_TRIGGERED.value,
            payload.record,
        )
        logger.info(
            "In-app reminder published",
            extra={"reminder_id": str(payload.reminder_id), "topic": topic_for(recipient.user_id)},
        )
        return True
