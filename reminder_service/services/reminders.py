"""Reminder service: user-facing reminder operations.

This module provides:
1. Creation with validation and preference-derived channel defaults
2. Listing, editing and deletion by the owner
3. The snooze and dismiss transitions of the reminder state machine

Every mutating operation commits, writes an audit entry and then
publishes the matching real-time event (newReminder, reminderUpdated,
reminderDeleted).
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlmodel import Session

from reminder_service.clock import Clock, SystemClock, to_naive_utc
from reminder_service.errors import AuthorizationError, NotFoundError, ValidationError
from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.models.reminder import (
    DUE_STATUSES,
    MESSAGE_MAX_LENGTH,
    DeliveryChannels,
    DeliveryChannelsUpdate,
    Reminder,
    ReminderStatus,
    ReminderType,
    TargetKind,
    TargetRef,
)
from reminder_service.models.user import ReminderPreferences
from reminder_service.services.audit import emit_audit_log
from reminder_service.services.preferences import PreferenceResolver
from reminder_service.services.store import ReminderStore

logger = logging.getLogger(__name__)

SNOOZE_MIN_MINUTES = 5
SNOOZE_MAX_MINUTES = 1440

_TAG_PATTERN = re.compile(r"<[^>]*>")


# -----------------------------------------------------------------------------
# Boundary validation
# -----------------------------------------------------------------------------


def coerce_reminder_type(value: Any) -> ReminderType:
    try:
        return ReminderType(value)
    except ValueError:
        raise ValidationError("Invalid reminder type")


def coerce_target(value: Any) -> TargetRef | None:
    """Accept a TargetRef, a (kind, id) pair or a {"kind", "id"} mapping."""
    if value is None or isinstance(value, TargetRef):
        return value

    if isinstance(value, dict):
        kind, target_id = value.get("kind"), value.get("id")
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        kind, target_id = value
    else:
        raise ValidationError("Invalid target")

    try:
        kind = TargetKind(kind)
    except ValueError:
        raise ValidationError("Invalid target model")
    try:
        target_id = target_id if isinstance(target_id, UUID) else UUID(str(target_id))
    except ValueError:
        raise ValidationError("Invalid target ID")
    return TargetRef(kind=kind, id=target_id)


def clean_message(message: Any) -> str:
    """Strip markup and surrounding whitespace, then enforce 1-200 characters."""
    if not isinstance(message, str):
        raise ValidationError(f"Message must be 1-{MESSAGE_MAX_LENGTH} characters")
    text = _TAG_PATTERN.sub("", message).strip()
    if not 1 <= len(text) <= MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be 1-{MESSAGE_MAX_LENGTH} characters")
    return text


def parse_instant(value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string; return naive UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("Invalid reminder time")
    if not isinstance(value, datetime):
        raise ValidationError("Invalid reminder time")
    return to_naive_utc(value)


def validate_snooze_minutes(minutes: Any) -> int:
    if (
        isinstance(minutes, bool)
        or not isinstance(minutes, int)
        or not SNOOZE_MIN_MINUTES <= minutes <= SNOOZE_MAX_MINUTES
    ):
        raise ValidationError(
            f"Snooze time must be {SNOOZE_MIN_MINUTES}-{SNOOZE_MAX_MINUTES} minutes"
        )
    return minutes


# -----------------------------------------------------------------------------
# Reminder Service
# -----------------------------------------------------------------------------


class ReminderService:
    """Service for user-initiated reminder operations."""

    def __init__(
        self,
        publisher: ReminderEventPublisher | None = None,
        resolver: PreferenceResolver | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.publisher = publisher or ReminderEventPublisher()
        self.resolver = resolver or PreferenceResolver(clock=self.clock)

    def create_reminder(
        self,
        session: Session,
        owner_id: UUID,
        reminder_type: ReminderType | str,
        message: str,
        remind_at: datetime | str,
        target: TargetRef | dict | tuple | None = None,
        delivery_channels: DeliveryChannelsUpdate | DeliveryChannels | None = None,
        created_by: UUID | None = None,
    ) -> Reminder:
        """Create a user reminder.

        Channels not given explicitly come from the owner's defaults.

        Raises:
            ValidationError: Bad type, target, message or remind_at
            NotFoundError: If the owner does not exist
        """
        reminder_type = coerce_reminder_type(reminder_type)
        target = coerce_target(target)
        if target is None and reminder_type != ReminderType.CUSTOM:
            raise ValidationError("Target is required for non-custom reminders")
        text = clean_message(message)

        remind_at = parse_instant(remind_at)
        now = self.clock.now()
        if remind_at <= now:
            raise ValidationError("Reminder time must be in the future")

        preferences = self.resolver.resolve(session, owner_id)
        channels = self._channels_for(delivery_channels, preferences)

        reminder = Reminder(
            owner_id=owner_id,
            type=reminder_type,
            target_kind=target.kind if target else None,
            target_id=target.id if target else None,
            message=text,
            remind_at=remind_at,
            status=ReminderStatus.PENDING,
            is_user_created=True,
            is_active=True,
            created_by=created_by or owner_id,
            created_at=now,
            updated_at=now,
        )
        reminder.set_delivery_channels(channels)

        ReminderStore(session).add(reminder)
        emit_audit_log(
            session,
            actor_id=created_by or owner_id,
            action="reminder.created",
            entity_id=reminder.id,
            details={"type": reminder_type.value, "remind_at": remind_at.isoformat()},
        )
        session.commit()
        session.refresh(reminder)

        logger.info(
            "Reminder created",
            extra={
                "reminder_id": str(reminder.id),
                "owner_id": str(owner_id),
                "remind_at": remind_at.isoformat(),
            },
        )

        self.publisher.reminder_created(reminder)
        return reminder

    def list_reminders(
        self,
        session: Session,
        owner_id: UUID,
        status: ReminderStatus | str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[Reminder]:
        """List the owner's reminders, newest remind_at first."""
        if page < 1 or limit < 1:
            raise ValidationError("Invalid page or limit")
        if status is not None:
            try:
                status = ReminderStatus(status)
            except ValueError:
                raise ValidationError("Invalid reminder status")
        return ReminderStore(session).list_for_owner(owner_id, status, page, limit)

    def get_owned_reminder(self, session: Session, reminder_id: UUID, actor_id: UUID) -> Reminder:
        """Load a reminder and check the actor owns it.

        Raises:
            NotFoundError: If the reminder does not exist
            AuthorizationError: If the actor is not the owner
        """
        reminder = ReminderStore(session).get(reminder_id)
        if reminder is None:
            raise NotFoundError("Reminder not found")
        if reminder.owner_id != actor_id:
            raise AuthorizationError("Not authorized")
        return reminder

    def update_reminder(
        self,
        session: Session,
        reminder_id: UUID,
        actor_id: UUID,
        message: str | None = None,
        delivery_channels: DeliveryChannelsUpdate | DeliveryChannels | None = None,
        remind_at: datetime | str | None = None,
    ) -> Reminder:
        """Edit a pending or snoozed reminder.

        A new remind_at must be in the future; it clears snooze_until and
        returns the reminder to pending.
        """
        reminder = self.get_owned_reminder(session, reminder_id, actor_id)
        if reminder.status not in DUE_STATUSES:
            raise ValidationError(f"Cannot edit a {reminder.status.value} reminder")

        now = self.clock.now()
        text = clean_message(message) if message is not None else None
        if remind_at is not None:
            remind_at = parse_instant(remind_at)
            if remind_at <= now:
                raise ValidationError("Reminder time must be in the future")

        if text is not None:
            reminder.message = text
        if delivery_channels is not None:
            reminder.set_delivery_channels(
                self._merge_channels(delivery_channels, reminder.delivery_channels)
            )
        if remind_at is not None:
            reminder.remind_at = remind_at
            reminder.snooze_until = None
            reminder.status = ReminderStatus.PENDING
        reminder.updated_at = now

        session.add(reminder)
        emit_audit_log(session, actor_id, "reminder.updated", reminder.id)
        session.commit()
        session.refresh(reminder)

        logger.info("Reminder updated", extra={"reminder_id": str(reminder.id)})
        self.publisher.reminder_updated(reminder)
        return reminder

    def snooze(
        self,
        session: Session,
        reminder_id: UUID,
        actor_id: UUID,
        minutes: int,
    ) -> Reminder:
        """Defer a pending or snoozed reminder by minutes.

        Sets remind_at = snooze_until = now + minutes and status = snoozed.

        Raises:
            ValidationError: If minutes is not an integer in [5, 1440], or
                the reminder is already sent or dismissed
            NotFoundError: If the reminder does not exist
            AuthorizationError: If the actor is not the owner
        """
        minutes = validate_snooze_minutes(minutes)
        reminder = self.get_owned_reminder(session, reminder_id, actor_id)
        if reminder.status not in DUE_STATUSES:
            raise ValidationError(f"Cannot snooze a {reminder.status.value} reminder")

        now = self.clock.now()
        reminder.snooze_until = now + timedelta(minutes=minutes)
        reminder.remind_at = reminder.snooze_until
        reminder.status = ReminderStatus.SNOOZED
        reminder.updated_at = now

        session.add(reminder)
        emit_audit_log(
            session,
            actor_id,
            "reminder.snoozed",
            reminder.id,
            details={"minutes": minutes, "snooze_until": reminder.snooze_until.isoformat()},
        )
        session.commit()
        session.refresh(reminder)

        logger.info(
            "Reminder snoozed",
            extra={"reminder_id": str(reminder.id), "minutes": minutes},
        )
        self.publisher.reminder_updated(reminder)
        return reminder

    def dismiss(self, session: Session, reminder_id: UUID, actor_id: UUID) -> Reminder:
        """Dismiss a pending or snoozed reminder. Dismissed is terminal.

        Dismissing an already dismissed reminder returns it unchanged.
        """
        reminder = self.get_owned_reminder(session, reminder_id, actor_id)
        if reminder.status == ReminderStatus.DISMISSED:
            return reminder
        if reminder.status not in DUE_STATUSES:
            raise ValidationError(f"Cannot dismiss a {reminder.status.value} reminder")

        reminder.status = ReminderStatus.DISMISSED
        reminder.updated_at = self.clock.now()

        session.add(reminder)
        emit_audit_log(session, actor_id, "reminder.dismissed", reminder.id)
        session.commit()
        session.refresh(reminder)

        logger.info("Reminder dismissed", extra={"reminder_id": str(reminder.id)})
        self.publisher.reminder_updated(reminder)
        return reminder

    def delete_reminder(self, session: Session, reminder_id: UUID, actor_id: UUID) -> None:
        """Delete a reminder owned by the actor."""
        reminder = self.get_owned_reminder(session, reminder_id, actor_id)
        owner_id = reminder.owner_id

        ReminderStore(session).delete(reminder)
        emit_audit_log(session, actor_id, "reminder.deleted", reminder_id)
        session.commit()

        logger.info("Reminder deleted", extra={"reminder_id": str(reminder_id)})
        self.publisher.reminder_deleted(owner_id, reminder_id)

    def get_preferences(self, session: Session, user_id: UUID) -> ReminderPreferences:
        return self.resolver.resolve(session, user_id)

    def update_preferences(
        self,
        session: Session,
        user_id: UUID,
        default_delivery_channels: DeliveryChannelsUpdate | None = None,
        default_reminder_times: dict | None = None,
    ) -> ReminderPreferences:
        return self.resolver.update(
            session,
            user_id,
            default_delivery_channels=default_delivery_channels,
            default_reminder_times=default_reminder_times,
        )

    @staticmethod
    def _merge_channels(
        requested: DeliveryChannelsUpdate | DeliveryChannels,
        defaults: DeliveryChannels,
    ) -> DeliveryChannels:
        if isinstance(requested, DeliveryChannels):
            return requested
        return requested.merged_with(defaults)

    def _channels_for(
        self,
        requested: DeliveryChannelsUpdate | DeliveryChannels | None,
        preferences: ReminderPreferences,
    ) -> DeliveryChannels:
        defaults = preferences.default_delivery_channels
        if requested is None:
            return defaults
        return self._merge_channels(requested, defaults)
