"""Delivery dispatcher: delivers one due reminder across its channels.

Flow for a single reminder:
1. Resolve the owner to a Recipient (missing owner leaves the reminder
   untouched so the next tick retries it)
2. Build the channel payload from message, type and remind_at
3. Invoke each enabled sender whose contact prerequisite is met; every
   attempt is isolated and recorded as a NotificationDelivery
4. Mark the reminder sent, whatever the per-channel outcomes
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlmodel import Session

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.channels.in_app import InAppSender
from reminder_service.channels.mail import SmtpEmailSender
from reminder_service.channels.push import FcmPushSender
from reminder_service.clock import Clock, SystemClock
from reminder_service.config import Settings
from reminder_service.errors import DeliveryChannelError, NotFoundError
from reminder_service.models.notification import (
    DeliveryStatus,
    NotificationChannel,
    NotificationDelivery,
)
from reminder_service.models.reminder import (
    DUE_STATUSES,
    Reminder,
    ReminderStatus,
    serialize_reminder,
)
from reminder_service.models.user import User
from reminder_service.realtime.notifier import Notifier
from reminder_service.services.audit import emit_audit_log

logger = logging.getLogger(__name__)

PUSH_TITLE = "Reminder"


@dataclass
class DispatchOutcome:
    """Result of dispatching one reminder."""

    reminder_id: UUID
    delivered: list[NotificationChannel] = field(default_factory=list)
    failed: list[NotificationChannel] = field(default_factory=list)
    skipped: list[NotificationChannel] = field(default_factory=list)
    dispatched: bool = True

    def to_dict(self) -> dict:
        return {
            "reminder_id": str(self.reminder_id),
            "delivered": [c.value for c in self.delivered],
            "failed": [c.value for c in self.failed],
            "skipped": [c.value for c in self.skipped],
            "dispatched": self.dispatched,
        }


def build_payload(reminder: Reminder, channel: NotificationChannel, record: dict) -> ChannelPayload:
    """Channel-specific title and body for a reminder."""
    if channel == NotificationChannel.EMAIL:
        title = f"Reminder: {reminder.message}"
        type_label = reminder.type.value.replace("_", " ")
        when = reminder.remind_at.strftime("%Y-%m-%d %H:%M UTC")
        body = f"You have a {type_label} scheduled for {when}."
    else:
        title = PUSH_TITLE
        body = reminder.message

    return ChannelPayload(
        reminder_id=reminder.id,
        reminder_type=reminder.type.value,
        message=reminder.message,
        remind_at=reminder.remind_at,
        title=title,
        body=body,
        record=record,
    )


class DeliveryDispatcher:
    """Delivers due reminders through injected channel senders.

    The notifier is the real-time layer; when no in-app sender is given,
    one publishing through the notifier is created.
    """

    def __init__(
        self,
        notifier: Notifier,
        email_sender: ChannelSender | None = None,
        push_sender: ChannelSender | None = None,
        in_app_sender: ChannelSender | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.notifier = notifier
        self.clock = clock or SystemClock()
        self.senders: dict[NotificationChannel, ChannelSender | None] = {
            NotificationChannel.IN_APP: in_app_sender or InAppSender(notifier),
            NotificationChannel.EMAIL: email_sender,
            NotificationChannel.PUSH: push_sender,
        }

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        notifier: Notifier,
        clock: Clock | None = None,
    ) -> "DeliveryDispatcher":
        """Wire the email and push senders whose provider settings are present."""
        email_sender = SmtpEmailSender.from_settings(settings) if settings.email_configured else None
        push_sender = FcmPushSender.from_settings(settings) if settings.push_configured else None
        logger.info(
            "Delivery channels configured",
            extra={"email": email_sender is not None, "push": push_sender is not None},
        )
        return cls(notifier, email_sender=email_sender, push_sender=push_sender, clock=clock)

    def resolve_recipient(self, session: Session, reminder: Reminder) -> Recipient:
        user = session.get(User, reminder.owner_id)
        if user is None:
            raise NotFoundError(f"Owner {reminder.owner_id} not found for reminder {reminder.id}")
        return Recipient(
            user_id=user.id,
            email=user.email,
            push_token=user.push_token,
            display_name=user.display_name,
        )

    def dispatch(self, session: Session, reminder: Reminder) -> DispatchOutcome:
        """Deliver a reminder and mark it sent. The caller commits.

        Reminders that are no longer due (dismissed, already sent or
        inactive) are skipped and left untouched.

        Raises:
            NotFoundError: If the owner cannot be resolved
        """
        outcome = DispatchOutcome(reminder_id=reminder.id)
        if reminder.status not in DUE_STATUSES or not reminder.is_active:
            logger.debug(
                "Reminder no longer due, skipping",
                extra={"reminder_id": str(reminder.id), "status": reminder.status.value},
            )
            outcome.dispatched = False
            return outcome

        recipient = self.resolve_recipient(session, reminder)
        record = self._record_for(reminder)

        enabled = reminder.delivery_channels
        wanted = {
            NotificationChannel.IN_APP: enabled.in_app,
            NotificationChannel.EMAIL: enabled.email,
            NotificationChannel.PUSH: enabled.push,
        }

        for channel, is_enabled in wanted.items():
            if not is_enabled:
                continue

            sender = self.senders.get(channel)
            if sender is not None and not sender.can_deliver(recipient):
                outcome.skipped.append(channel)
                logger.info(
                    "Recipient lacks contact data for channel, skipping",
                    extra={"reminder_id": str(reminder.id), "channel": channel.value},
                )
                continue

            payload = build_payload(reminder, channel, record)
            error = self._attempt(sender, channel, recipient, payload)
            self._record_delivery(session, reminder, channel, sender, recipient, error)
            if error is None:
                outcome.delivered.append(channel)
            else:
                outcome.failed.append(channel)

        now = self.clock.now()
        reminder.status = ReminderStatus.SENT
        reminder.sent_at = now
        reminder.updated_at = now
        session.add(reminder)

        emit_audit_log(
            session,
            actor_id=None,
            action="reminder.triggered",
            entity_id=reminder.id,
            details=outcome.to_dict(),
        )

        logger.info("Reminder dispatched", extra=outcome.to_dict())
        return outcome

    def _attempt(
        self,
        sender: ChannelSender | None,
        channel: NotificationChannel,
        recipient: Recipient,
        payload: ChannelPayload,
    ) -> str | None:
        """Run one sender in isolation; return an error message or None."""
        try:
            if sender is None:
                raise DeliveryChannelError(channel.value, "sender not configured")
            if not sender.send(recipient, payload):
                raise DeliveryChannelError(channel.value, "provider rejected the message")
        except Exception as e:
            error = str(e)[:500]
            logger.error(
                f"Delivery failed on {channel.value} for reminder {payload.reminder_id}",
                extra={
                    "reminder_id": str(payload.reminder_id),
                    "channel": channel.value,
                    "error": error,
                },
                exc_info=not isinstance(e, DeliveryChannelError),
            )
            return error
        return None

    def _record_delivery(
        self,
        session: Session,
        reminder: Reminder,
        channel: NotificationChannel,
        sender: ChannelSender | None,
        recipient: Recipient,
        error: str | None,
    ) -> None:
        session.add(
            NotificationDelivery(
                user_id=reminder.owner_id,
                reminder_id=reminder.id,
                channel=channel,
                recipient=sender.address_of(recipient) if sender else None,
                status=DeliveryStatus.SENT if error is None else DeliveryStatus.FAILED,
                error_message=error,
                attempted_at=self.clock.now(),
            )
        )

    def _record_for(self, reminder: Reminder) -> dict:
        # Serialized as it will read once sent
        record = serialize_reminder(reminder)
        record["status"] = ReminderStatus.SENT.value
        return record
