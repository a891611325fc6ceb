"""Preference resolver: per-user reminder defaults.

Stored preferences live on the user record as JSON. Any entry missing
from storage falls back to the system defaults below.
"""

import logging
from typing import Any
from uuid import UUID

from sqlmodel import Session

from reminder_service.clock import Clock, SystemClock
from reminder_service.errors import NotFoundError, ValidationError
from reminder_service.models.reminder import (
    DeliveryChannels,
    DeliveryChannelsUpdate,
    ReminderType,
)
from reminder_service.models.user import ReminderPreferences, User

logger = logging.getLogger(__name__)

SYSTEM_DEFAULT_CHANNELS = DeliveryChannels(in_app=True, email=True, push=False)

# Lead time in minutes before the deadline, per reminder type
SYSTEM_DEFAULT_REMINDER_TIMES: dict[ReminderType, int] = {
    ReminderType.TASK_DUE: 60,
    ReminderType.MEETING: 30,
    ReminderType.GOAL_DEADLINE: 1440,
    ReminderType.APPRAISAL_SUBMISSION: 1440,
    ReminderType.MANAGER_FEEDBACK: 720,
    ReminderType.CUSTOM: 60,
}


class PreferenceResolver:
    """Resolves and updates a user's reminder preferences."""

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()

    def get_user(self, session: Session, user_id: UUID) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def resolve(self, session: Session, user_id: UUID) -> ReminderPreferences:
        """Return the user's preferences merged over the system defaults.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = self.get_user(session, user_id)
        return self.resolve_for(user)

    def resolve_for(self, user: User) -> ReminderPreferences:
        stored = user.reminder_preferences or {}

        stored_channels = stored.get("default_delivery_channels") or {}
        channels = DeliveryChannelsUpdate.model_validate(stored_channels).merged_with(
            SYSTEM_DEFAULT_CHANNELS
        )

        times = dict(SYSTEM_DEFAULT_REMINDER_TIMES)
        for key, minutes in (stored.get("default_reminder_times") or {}).items():
            try:
                times[ReminderType(key)] = int(minutes)
            except ValueError:
                logger.warning(
                    "Ignoring unknown stored reminder type",
                    extra={"user_id": str(user.id), "reminder_type": key},
                )

        return ReminderPreferences(
            default_delivery_channels=channels,
            default_reminder_times=times,
        )

    def update(
        self,
        session: Session,
        user_id: UUID,
        default_delivery_channels: DeliveryChannelsUpdate | None = None,
        default_reminder_times: dict[Any, Any] | None = None,
    ) -> ReminderPreferences:
        """Replace the user's stored preferences.

        Channels not given fall back to the system defaults; lead times not
        given fall back per type. Existing reminders are not rewritten.

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If a reminder type or lead time is invalid
        """
        user = self.get_user(session, user_id)

        channels = (default_delivery_channels or DeliveryChannelsUpdate()).merged_with(
            SYSTEM_DEFAULT_CHANNELS
        )
        times = self._validate_reminder_times(default_reminder_times or {})

        user.reminder_preferences = {
            "default_delivery_channels": channels.model_dump(),
            "default_reminder_times": {t.value: minutes for t, minutes in times.items()},
        }
        user.updated_at = self.clock.now()
        session.add(user)
        session.commit()
        session.refresh(user)

        logger.info(
            "Reminder preferences updated",
            extra={"user_id": str(user_id), "reminder_times": len(times)},
        )
        return self.resolve_for(user)

    @staticmethod
    def _validate_reminder_times(raw: dict[Any, Any]) -> dict[ReminderType, int]:
        times: dict[ReminderType, int] = {}
        for key, minutes in raw.items():
            try:
                reminder_type = ReminderType(key)
            except ValueError:
                raise ValidationError(f"Invalid reminder type: {key}")
            if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
                raise ValidationError(
                    f"Reminder time for {reminder_type.value} must be a non-negative integer"
                )
            times[reminder_type] = minutes
        return times
