"""Event type definitions for the real-time reminder events."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from reminder_service.clock import utc_now


class ReminderEventType(str, Enum):
    """Event names broadcast to the owner's real-time topic."""

    NEW_REMINDER = "newReminder"
    REMINDER_UPDATED = "reminderUpdated"
    REMINDER_DELETED = "reminderDeleted"
    REMINDER_TRIGGERED = "reminderTriggered"


class ReminderEvent(BaseModel):
    """A reminder event addressed to one owner.

    data is the full serialized reminder, or the reminder id for deletions.
    """

    event_type: ReminderEventType
    owner_id: UUID
    data: Any
    timestamp: datetime = Field(default_factory=utc_now)

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "owner_id": str(self.owner_id),
            "timestamp": self.timestamp.isoformat(),
        }
