"""SQLModel entities for the reminder service."""

from reminder_service.models.audit_log import AuditLog
from reminder_service.models.notification import (
    DeliveryStatus,
    NotificationChannel,
    NotificationDelivery,
)
from reminder_service.models.reminder import (
    DeliveryChannels,
    DeliveryChannelsUpdate,
    Reminder,
    ReminderStatus,
    ReminderType,
    TargetKind,
    TargetRef,
)
from reminder_service.models.user import PreferencesUpdate, ReminderPreferences, User

__all__ = [
    "User",
    "Reminder",
    "ReminderStatus",
    "ReminderType",
    "TargetKind",
    "TargetRef",
    "DeliveryChannels",
    "DeliveryChannelsUpdate",
    "NotificationDelivery",
    "NotificationChannel",
    "DeliveryStatus",
    "AuditLog",
    "ReminderPreferences",
    "PreferencesUpdate",
]
