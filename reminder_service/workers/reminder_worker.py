"""Reminder worker: feeds due reminders into the delivery dispatcher.

Selects reminders where status is pending or snoozed, remind_at has
elapsed and is_active is set, one page of batch_size at a time. A
reminder whose dispatch raises keeps its status and is picked up again
on the next tick.
"""

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlmodel import Session

from reminder_service.models.reminder import Reminder
from reminder_service.services.dispatcher import DeliveryDispatcher
from reminder_service.services.store import ReminderStore
from reminder_service.workers.base import WorkerBase


class ReminderWorker(WorkerBase[Reminder]):
    """Worker for delivering due reminders."""

    def __init__(self, dispatcher: DeliveryDispatcher, batch_size: int = 100) -> None:
        super().__init__(batch_size=batch_size)
        self.dispatcher = dispatcher

    @property
    def worker_name(self) -> str:
        return "ReminderWorker"

    def fetch_pending(
        self, session: Session, as_of: datetime, exclude_ids: Collection[UUID] = ()
    ) -> list[Reminder]:
        return ReminderStore(session).find_due(as_of, limit=self.batch_size, exclude_ids=exclude_ids)

    def process_item(self, session: Session, item: Reminder) -> bool:
        outcome = self.dispatcher.dispatch(session, item)
        return outcome.dispatched

    def get_item_id(self, item: Reminder) -> UUID:
        return item.id
