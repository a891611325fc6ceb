"""NotificationDelivery entity model: one row per channel attempt."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from reminder_service.clock import utc_now


class NotificationChannel(str, Enum):
    """Notification delivery channels."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"


class DeliveryStatus(str, Enum):
    """Outcome of a single channel attempt."""

    SENT = "sent"
    FAILED = "failed"


class NotificationDelivery(SQLModel, table=True):
    """Notification delivery database model."""

    __tablename__ = "notification_deliveries"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    reminder_id: UUID = Field(foreign_key="reminders.id", ondelete="CASCADE", index=True)
    channel: NotificationChannel
    recipient: str | None = Field(default=None, max_length=512)
    status: DeliveryStatus = Field(index=True)
    error_message: str | None = Field(default=None)
    attempted_at: datetime = Field(default_factory=utc_now)
