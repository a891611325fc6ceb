"""User entity model and reminder preference schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Column, Field, SQLModel

from reminder_service.clock import utc_now
from reminder_service.models.reminder import (
    DeliveryChannels,
    DeliveryChannelsUpdate,
    ReminderType,
)


class User(SQLModel, table=True):
    """User database model.

    Only the fields the reminder core reads: contact data for the
    delivery channels and the stored reminder preferences.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str | None = Field(default=None, max_length=255, unique=True, index=True)
    display_name: str | None = Field(default=None, max_length=100)
    push_token: str | None = Field(default=None, max_length=512)
    reminder_preferences: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql")),
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ReminderPreferences(BaseModel):
    """Resolved preferences: stored values merged over system defaults."""

    default_delivery_channels: DeliveryChannels
    default_reminder_times: dict[ReminderType, int]

    def lead_time_minutes(self, reminder_type: ReminderType) -> int:
        return self.default_reminder_times[reminder_type]


class PreferencesUpdate(SQLModel):
    """Schema for updating reminder preferences."""

    default_delivery_channels: DeliveryChannelsUpdate | None = None
    default_reminder_times: dict[ReminderType, int] | None = None
