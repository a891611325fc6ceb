"""Reminder store: persistence and queries over reminder records."""

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlmodel import Session, select

from reminder_service.models.reminder import (
    DUE_STATUSES,
    Reminder,
    ReminderStatus,
    ReminderType,
    TargetRef,
)


class ReminderStore:
    """CRUD and due-time queries over the reminders table.

    The store never commits; callers own the transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, reminder_id: UUID) -> Reminder | None:
        return self.session.get(Reminder, reminder_id)

    def add(self, reminder: Reminder) -> Reminder:
        self.session.add(reminder)
        self.session.flush()
        return reminder

    def delete(self, reminder: Reminder) -> None:
        self.session.delete(reminder)
        self.session.flush()

    def find_linked(
        self,
        owner_id: UUID,
        target: TargetRef,
        reminder_type: ReminderType,
    ) -> Reminder | None:
        """Find the system-generated reminder for (owner, target, type)."""
        return self.session.exec(
            select(Reminder)
            .where(Reminder.owner_id == owner_id)
            .where(Reminder.target_kind == target.kind)
            .where(Reminder.target_id == target.id)
            .where(Reminder.type == reminder_type)
            .where(Reminder.is_user_created == False)  # noqa: E712
        ).first()

    def find_due(
        self,
        as_of: datetime,
        limit: int | None = None,
        exclude_ids: Collection[UUID] = (),
    ) -> list[Reminder]:
        """Active pending/snoozed reminders whose remind_at has elapsed.

        exclude_ids drops reminders already attempted by the caller, so a
        page of failing rows cannot hide the reminders behind it.
        """
        query = (
            select(Reminder)
            .where(Reminder.status.in_(DUE_STATUSES))
            .where(Reminder.remind_at <= as_of)
            .where(Reminder.is_active == True)  # noqa: E712
            .order_by(Reminder.remind_at)
        )
        if exclude_ids:
            query = query.where(Reminder.id.not_in(list(exclude_ids)))
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.exec(query).all())

    def list_for_owner(
        self,
        owner_id: UUID,
        status: ReminderStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[Reminder]:
        """Owner's reminders, newest remind_at first."""
        query = select(Reminder).where(Reminder.owner_id == owner_id)
        if status is not None:
            query = query.where(Reminder.status == status)
        query = query.order_by(Reminder.remind_at.desc()).offset((page - 1) * limit).limit(limit)
        return list(self.session.exec(query).all())

    def delete_linked(
        self,
        owner_id: UUID,
        target: TargetRef,
        reminder_type: ReminderType,
    ) -> list[UUID]:
        """Delete every reminder for (owner, target, type).

        Returns:
            list[UUID]: Ids of the deleted reminders
        """
        reminders = self.session.exec(
            select(Reminder)
            .where(Reminder.owner_id == owner_id)
            .where(Reminder.target_kind == target.kind)
            .where(Reminder.target_id == target.id)
            .where(Reminder.type == reminder_type)
        ).all()

        deleted = []
        for reminder in reminders:
            deleted.append(reminder.id)
            self.session.delete(reminder)
        self.session.flush()
        return deleted
