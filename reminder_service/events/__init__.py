"""Reminder event module.

Components:
- types.py: Event names and the event envelope
- publisher.py: Best-effort publishing through the Notifier interface
"""

from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.events.types import ReminderEvent, ReminderEventType

__all__ = [
    "ReminderEventType",
    "ReminderEvent",
    "ReminderEventPublisher",
]
