"""Reminder entity model and schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

import sqlalchemy as sa
from pydantic import BaseModel, ConfigDict, StrictInt
from sqlmodel import Field, SQLModel

from reminder_service.clock import utc_now

MESSAGE_MAX_LENGTH = 200


class ReminderType(str, Enum):
    """What a reminder is about."""

    TASK_DUE = "task_due"
    MEETING = "meeting"
    GOAL_DEADLINE = "goal_deadline"
    APPRAISAL_SUBMISSION = "appraisal_submission"
    MANAGER_FEEDBACK = "manager_feedback"
    CUSTOM = "custom"


class ReminderStatus(str, Enum):
    """Reminder lifecycle states.

    dismissed is terminal. sent is terminal for the occurrence and is only
    re-armed to pending by the linked-entity sync.
    """

    PENDING = "pending"
    SNOOZED = "snoozed"
    DISMISSED = "dismissed"
    SENT = "sent"


DUE_STATUSES = (ReminderStatus.PENDING, ReminderStatus.SNOOZED)


class TargetKind(str, Enum):
    """Closed set of entity kinds a reminder can point at."""

    TASK = "Task"
    MEETING = "Meeting"
    GOAL = "Goal"
    APPRAISAL = "Appraisal"
    FEEDBACK = "Feedback"


class TargetRef(BaseModel):
    """Reference from a reminder to the entity it concerns."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    id: UUID


class DeliveryChannels(BaseModel):
    """Per-channel enablement."""

    in_app: bool = True
    email: bool = True
    push: bool = False


class DeliveryChannelsUpdate(BaseModel):
    """Partial channel selection; unset channels fall back to defaults."""

    in_app: bool | None = None
    email: bool | None = None
    push: bool | None = None

    def merged_with(self, defaults: DeliveryChannels) -> DeliveryChannels:
        return DeliveryChannels(
            in_app=defaults.in_app if self.in_app is None else self.in_app,
            email=defaults.email if self.email is None else self.email,
            push=defaults.push if self.push is None else self.push,
        )


class Reminder(SQLModel, table=True):
    """Reminder database model."""

    __tablename__ = "reminders"
    __table_args__ = (
        # One system-generated reminder per (owner, target, type)
        sa.Index(
            "uq_reminders_linked_target",
            "owner_id",
            "target_kind",
            "target_id",
            "type",
            unique=True,
            postgresql_where=sa.text("is_user_created = false"),
            sqlite_where=sa.text("is_user_created = 0"),
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    type: ReminderType
    target_kind: TargetKind | None = Field(default=None)
    target_id: UUID | None = Field(default=None, index=True)
    message: str = Field(max_length=MESSAGE_MAX_LENGTH)
    deliver_in_app: bool = Field(default=True)
    deliver_email: bool = Field(default=True)
    deliver_push: bool = Field(default=False)
    remind_at: datetime = Field(index=True)
    snooze_until: datetime | None = Field(default=None)
    status: ReminderStatus = Field(default=ReminderStatus.PENDING, index=True)
    is_user_created: bool = Field(default=True)
    is_active: bool = Field(default=True)
    created_by: UUID
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    sent_at: datetime | None = Field(default=None)

    @property
    def target(self) -> TargetRef | None:
        if self.target_kind is None or self.target_id is None:
            return None
        return TargetRef(kind=self.target_kind, id=self.target_id)

    @property
    def delivery_channels(self) -> DeliveryChannels:
        return DeliveryChannels(
            in_app=self.deliver_in_app,
            email=self.deliver_email,
            push=self.deliver_push,
        )

    def set_delivery_channels(self, channels: DeliveryChannels) -> None:
        self.deliver_in_app = channels.in_app
        self.deliver_email = channels.email
        self.deliver_push = channels.push


class ReminderCreate(SQLModel):
    """Schema for reminder creation."""

    type: ReminderType
    target: TargetRef | None = None
    message: str
    delivery_channels: DeliveryChannelsUpdate | None = None
    remind_at: datetime


class ReminderUpdate(SQLModel):
    """Schema for editing a reminder."""

    message: str | None = None
    delivery_channels: DeliveryChannelsUpdate | None = None
    remind_at: datetime | None = None


class SnoozeRequest(SQLModel):
    """Schema for snoozing a reminder."""

    snooze_minutes: StrictInt


class ReminderResponse(SQLModel):
    """Schema for reminder response."""

    id: UUID
    owner_id: UUID
    type: ReminderType
    target: TargetRef | None
    message: str
    delivery_channels: DeliveryChannels
    remind_at: datetime
    snooze_until: datetime | None
    status: ReminderStatus
    is_user_created: bool
    is_active: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    sent_at: datetime | None

    model_config = {"from_attributes": True}


class ReminderListResponse(SQLModel):
    """Schema for reminder list response."""

    reminders: list[ReminderResponse]
    page: int
    limit: int


def serialize_reminder(reminder: Reminder) -> dict:
    """JSON-ready representation carried by real-time events."""
    return ReminderResponse.model_validate(reminder).model_dump(mode="json")
