"""Reminder core services.

Services:
- reminders.py: User operations (create, list, edit, snooze, dismiss, delete)
- linked.py: Reminders kept in sync with external entity deadlines
- preferences.py: Per-user delivery channel and lead time defaults
- dispatcher.py: Multi-channel delivery of a due reminder
- store.py: Reminder persistence queries
"""

from reminder_service.services.dispatcher import DeliveryDispatcher, DispatchOutcome
from reminder_service.services.linked import LinkedEntityEvent, LinkedReminderSync
from reminder_service.services.preferences import PreferenceResolver
from reminder_service.services.reminders import ReminderService
from reminder_service.services.store import ReminderStore

__all__ = [
    "ReminderService",
    "LinkedReminderSync",
    "LinkedEntityEvent",
    "PreferenceResolver",
    "DeliveryDispatcher",
    "DispatchOutcome",
    "ReminderStore",
]
