"""Linked-entity reminder sync.

Keeps exactly one system-generated reminder per (owner, target, type) in
lock-step with an external entity's deadline. Goal, task and meeting
collaborators fire a LinkedEntityEvent on create/update/delete instead of
computing reminders inline.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlmodel import Session

from reminder_service.clock import Clock, SystemClock
from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.models.reminder import (
    Reminder,
    ReminderStatus,
    ReminderType,
    TargetKind,
    TargetRef,
)
from reminder_service.services.audit import emit_audit_log
from reminder_service.services.preferences import PreferenceResolver
from reminder_service.services.reminders import (
    MESSAGE_MAX_LENGTH,
    coerce_reminder_type,
    coerce_target,
    parse_instant,
)
from reminder_service.services.store import ReminderStore

logger = logging.getLogger(__name__)

DEFAULT_TYPE_FOR_KIND: dict[TargetKind, ReminderType] = {
    TargetKind.TASK: ReminderType.TASK_DUE,
    TargetKind.MEETING: ReminderType.MEETING,
    TargetKind.GOAL: ReminderType.GOAL_DEADLINE,
    TargetKind.APPRAISAL: ReminderType.APPRAISAL_SUBMISSION,
    TargetKind.FEEDBACK: ReminderType.MANAGER_FEEDBACK,
}


@dataclass
class LinkedEntityEvent:
    """Lifecycle event fired by a deadline-bearing entity's owner module."""

    kind: TargetKind
    entity_id: UUID
    owner_id: UUID
    deadline: datetime | None = None
    title: str | None = None
    deleted: bool = False
    reminder_type: ReminderType | None = None

    @property
    def target(self) -> TargetRef:
        return TargetRef(kind=self.kind, id=self.entity_id)

    def resolved_type(self) -> ReminderType:
        return self.reminder_type or DEFAULT_TYPE_FOR_KIND[self.kind]


def linked_message(target: TargetRef, title: str | None) -> str:
    if title:
        text = f'{target.kind.value} "{title.strip()}" is due soon'
    else:
        text = f"{target.kind.value} deadline is approaching"
    if len(text) > MESSAGE_MAX_LENGTH:
        text = text[: MESSAGE_MAX_LENGTH - 3] + "..."
    return text


class LinkedReminderSync:
    """Upserts and deletes reminders tied to external entities."""

    def __init__(
        self,
        publisher: ReminderEventPublisher | None = None,
        resolver: PreferenceResolver | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.publisher = publisher or ReminderEventPublisher()
        self.resolver = resolver or PreferenceResolver(clock=self.clock)

    def sync_linked_reminder(
        self,
        session: Session,
        owner_id: UUID,
        target: TargetRef | dict | tuple,
        reminder_type: ReminderType | str,
        deadline: datetime | str,
        title: str | None = None,
    ) -> Reminder:
        """Create or update the reminder for (owner, target, type).

        remind_at = deadline - lead time for the type, taken from the owner's
        current preferences. It may already be in the past, in which case
        the next scheduler tick delivers it. An existing reminder has its
        message, channels and remind_at rewritten. Unless the user dismissed
        it, it is also re-armed: snooze_until is cleared and status returns
        to pending. A dismissed reminder stays dismissed.

        Raises:
            NotFoundError: If the owner cannot be resolved
            ValidationError: If the target, type or deadline is invalid
        """
        reminder_type = coerce_reminder_type(reminder_type)
        target = coerce_target(target)
        deadline = parse_instant(deadline)

        preferences = self.resolver.resolve(session, owner_id)
        lead = timedelta(minutes=preferences.lead_time_minutes(reminder_type))
        remind_at = deadline - lead
        channels = preferences.default_delivery_channels
        message = linked_message(target, title)
        now = self.clock.now()

        store = ReminderStore(session)
        reminder = store.find_linked(owner_id, target, reminder_type)
        created = reminder is None

        if created:
            reminder = Reminder(
                owner_id=owner_id,
                type=reminder_type,
                target_kind=target.kind,
                target_id=target.id,
                message=message,
                remind_at=remind_at,
                status=ReminderStatus.PENDING,
                is_user_created=False,
                is_active=True,
                created_by=owner_id,
                created_at=now,
                updated_at=now,
            )
            reminder.set_delivery_channels(channels)
            store.add(reminder)
        else:
            reminder.message = message
            reminder.set_delivery_channels(channels)
            reminder.remind_at = remind_at
            reminder.updated_at = now
            if reminder.status != ReminderStatus.DISMISSED:
                reminder.snooze_until = None
                reminder.status = ReminderStatus.PENDING
                reminder.is_active = True
                reminder.sent_at = None
            session.add(reminder)

        emit_audit_log(
            session,
            actor_id=owner_id,
            action="reminder.linked_created" if created else "reminder.linked_updated",
            entity_id=reminder.id,
            details={
                "target_kind": target.kind.value,
                "target_id": str(target.id),
                "deadline": deadline.isoformat(),
                "remind_at": remind_at.isoformat(),
            },
        )
        session.commit()
        session.refresh(reminder)

        logger.info(
            "Linked reminder created" if created else "Linked reminder updated",
            extra={
                "reminder_id": str(reminder.id),
                "target_kind": target.kind.value,
                "target_id": str(target.id),
                "remind_at": remind_at.isoformat(),
            },
        )

        if created:
            self.publisher.reminder_created(reminder)
        else:
            self.publisher.reminder_updated(reminder)
        return reminder

    def delete_linked_reminders(
        self,
        session: Session,
        target: TargetRef | dict | tuple,
        reminder_type: ReminderType | str,
        owner_id: UUID,
    ) -> list[UUID]:
        """Delete all reminders for (owner, target, type).

        Returns:
            list[UUID]: Ids of the deleted reminders
        """
        reminder_type = coerce_reminder_type(reminder_type)
        target = coerce_target(target)

        deleted = ReminderStore(session).delete_linked(owner_id, target, reminder_type)
        for reminder_id in deleted:
            emit_audit_log(
                session,
                actor_id=owner_id,
                action="reminder.deleted",
                entity_id=reminder_id,
                details={"target_kind": target.kind.value, "target_id": str(target.id)},
            )
        session.commit()

        if deleted:
            logger.info(
                "Linked reminders deleted",
                extra={"target_id": str(target.id), "count": len(deleted)},
            )
        for reminder_id in deleted:
            self.publisher.reminder_deleted(owner_id, reminder_id)
        return deleted

    def handle_linked_entity_event(
        self,
        session: Session,
        event: LinkedEntityEvent,
    ) -> Reminder | list[UUID] | None:
        """Route an entity lifecycle event.

        Deletion removes the linked reminders; a deadline upserts the
        reminder; an entity without a deadline is ignored.
        """
        reminder_type = event.resolved_type()
        if event.deleted:
            return self.delete_linked_reminders(
                session, event.target, reminder_type, event.owner_id
            )
        if event.deadline is None:
            logger.debug(
                "Entity has no deadline, no reminder synced",
                extra={"target_id": str(event.entity_id)},
            )
            return None
        return self.sync_linked_reminder(
            session,
            owner_id=event.owner_id,
            target=event.target,
            reminder_type=reminder_type,
            deadline=event.deadline,
            title=event.title,
        )
