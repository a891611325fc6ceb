"""Tests for the delivery dispatcher.

Tests cover:
- Fan-out to the enabled channels
- Channel failures isolated from each other and from the sent transition
- Contact prerequisites (email address, push token)
- Payload formats per channel
- Missing owner leaves the reminder for retry
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlmodel import Session, select

from reminder_service.errors import NotFoundError
from reminder_service.models.notification import (
    DeliveryStatus,
    NotificationChannel,
    NotificationDelivery,
)
from reminder_service.models.reminder import (
    DeliveryChannels,
    Reminder,
    ReminderStatus,
    ReminderType,
)
from reminder_service.models.user import User
from reminder_service.services.dispatcher import DeliveryDispatcher, build_payload


def _due_reminder(session: Session, user: User, clock, channels: DeliveryChannels | None = None) -> Reminder:
    reminder = Reminder(
        owner_id=user.id,
        type=ReminderType.MEETING,
        message="Design sync",
        remind_at=clock.now() - timedelta(minutes=1),
        created_by=user.id,
    )
    reminder.set_delivery_channels(channels or DeliveryChannels(in_app=True, email=True, push=True))
    session.add(reminder)
    session.commit()
    session.refresh(reminder)
    return reminder


def _deliveries(session: Session, reminder: Reminder) -> dict[NotificationChannel, NotificationDelivery]:
    rows = session.exec(
        select(NotificationDelivery).where(NotificationDelivery.reminder_id == reminder.id)
    ).all()
    return {row.channel: row for row in rows}


class TestDispatch:
    """Tests for DeliveryDispatcher.dispatch."""

    def test_all_channels_delivered(
        self, dispatcher, db_session: Session, test_user, clock, notifier, email_sender, push_sender
    ):
        """Every enabled channel is invoked and the reminder becomes sent."""
        reminder = _due_reminder(db_session, test_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        assert set(outcome.delivered) == {
            NotificationChannel.IN_APP,
            NotificationChannel.EMAIL,
            NotificationChannel.PUSH,
        }
        assert reminder.status == ReminderStatus.SENT
        assert reminder.sent_at == clock.now()
        assert len(email_sender.calls) == 1
        assert len(push_sender.calls) == 1

        triggered = notifier.named("reminderTriggered")
        assert len(triggered) == 1
        assert triggered[0][0] == str(test_user.id)
        assert triggered[0][2]["id"] == str(reminder.id)
        assert triggered[0][2]["status"] == "sent"

    def test_disabled_channels_not_invoked(
        self, dispatcher, db_session: Session, test_user, clock, notifier, email_sender, push_sender
    ):
        reminder = _due_reminder(
            db_session, test_user, clock, DeliveryChannels(in_app=True, email=False, push=False)
        )

        dispatcher.dispatch(db_session, reminder)

        assert email_sender.calls == []
        assert push_sender.calls == []
        assert len(notifier.named("reminderTriggered")) == 1

    def test_email_failure_does_not_block_other_channels(
        self, dispatcher, db_session: Session, test_user, clock, notifier, email_sender, push_sender
    ):
        """A raising email sender still leaves in-app and push delivered."""
        email_sender.error = ConnectionError("SMTP relay unreachable")
        reminder = _due_reminder(db_session, test_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        assert outcome.failed == [NotificationChannel.EMAIL]
        assert NotificationChannel.IN_APP in outcome.delivered
        assert NotificationChannel.PUSH in outcome.delivered
        assert reminder.status == ReminderStatus.SENT

        rows = _deliveries(db_session, reminder)
        assert rows[NotificationChannel.EMAIL].status == DeliveryStatus.FAILED
        assert "SMTP relay unreachable" in rows[NotificationChannel.EMAIL].error_message
        assert rows[NotificationChannel.PUSH].status == DeliveryStatus.SENT

    def test_rejected_push_recorded_as_failed(
        self, dispatcher, db_session: Session, test_user, clock, push_sender
    ):
        push_sender.result = False
        reminder = _due_reminder(db_session, test_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        assert outcome.failed == [NotificationChannel.PUSH]
        assert reminder.status == ReminderStatus.SENT

    def test_all_channels_failing_still_sent(
        self, db_session: Session, test_user, clock, notifier, email_sender, push_sender
    ):
        """Channel failures never keep a reminder pending."""
        email_sender.error = RuntimeError("boom")
        push_sender.error = RuntimeError("boom")
        in_app = type(email_sender)(NotificationChannel.IN_APP, error=RuntimeError("socket gone"))
        dispatcher = DeliveryDispatcher(
            notifier, email_sender=email_sender, push_sender=push_sender, in_app_sender=in_app, clock=clock
        )
        reminder = _due_reminder(db_session, test_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)

        assert len(outcome.failed) == 3
        assert outcome.delivered == []
        assert reminder.status == ReminderStatus.SENT

    def test_missing_push_token_skips_push(
        self, dispatcher, db_session: Session, other_user, clock, push_sender
    ):
        """A recipient without a push token is skipped, not failed."""
        reminder = _due_reminder(db_session, other_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        assert outcome.skipped == [NotificationChannel.PUSH]
        assert push_sender.calls == []
        assert NotificationChannel.PUSH not in _deliveries(db_session, reminder)
        assert reminder.status == ReminderStatus.SENT

    def test_missing_email_skips_email(self, dispatcher, db_session: Session, clock, email_sender):
        user = User(display_name="No mail", push_token="tok")
        db_session.add(user)
        db_session.commit()
        reminder = _due_reminder(db_session, user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)

        assert outcome.skipped == [NotificationChannel.EMAIL]
        assert email_sender.calls == []

    def test_unconfigured_sender_recorded_as_failed(self, db_session: Session, test_user, clock, notifier):
        """An enabled channel without a wired sender is a failed attempt."""
        dispatcher = DeliveryDispatcher(notifier, clock=clock)
        reminder = _due_reminder(db_session, test_user, clock)

        outcome = dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        assert set(outcome.failed) == {NotificationChannel.EMAIL, NotificationChannel.PUSH}
        rows = _deliveries(db_session, reminder)
        assert rows[NotificationChannel.EMAIL].error_message == "email: sender not configured"
        assert reminder.status == ReminderStatus.SENT

    def test_missing_owner_leaves_reminder_pending(self, dispatcher, db_session: Session, test_user, clock):
        """If the recipient cannot be resolved the reminder is not transitioned."""
        reminder = _due_reminder(db_session, test_user, clock)
        reminder.owner_id = uuid4()

        with pytest.raises(NotFoundError):
            dispatcher.dispatch(db_session, reminder)

        assert reminder.status == ReminderStatus.PENDING

    @pytest.mark.parametrize("status", [ReminderStatus.DISMISSED, ReminderStatus.SENT])
    def test_not_due_status_skipped(self, dispatcher, db_session: Session, test_user, clock, notifier, status):
        reminder = _due_reminder(db_session, test_user, clock)
        reminder.status = status

        outcome = dispatcher.dispatch(db_session, reminder)

        assert outcome.dispatched is False
        assert reminder.status == status
        assert notifier.events == []

    def test_writes_triggered_audit_entry(self, dispatcher, db_session: Session, test_user, clock):
        from reminder_service.models.audit_log import AuditLog

        reminder = _due_reminder(db_session, test_user, clock)
        dispatcher.dispatch(db_session, reminder)
        db_session.commit()

        entry = db_session.exec(select(AuditLog).where(AuditLog.entity_id == reminder.id)).one()
        assert entry.action == "reminder.triggered"
        assert entry.actor_id is None


class TestBuildPayload:
    """Tests for channel payload formatting."""

    def test_email_subject_and_body(self, db_session: Session, test_user, clock):
        reminder = _due_reminder(db_session, test_user, clock)

        payload = build_payload(reminder, NotificationChannel.EMAIL, {})

        assert payload.title == "Reminder: Design sync"
        assert payload.body == "You have a meeting scheduled for 2026-01-05 08:59 UTC."

    def test_push_title_and_body(self, db_session: Session, test_user, clock):
        reminder = _due_reminder(db_session, test_user, clock)

        payload = build_payload(reminder, NotificationChannel.PUSH, {})

        assert payload.title == "Reminder"
        assert payload.body == "Design sync"
        assert payload.reminder_type == "meeting"
