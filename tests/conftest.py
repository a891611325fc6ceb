"""Shared fixtures: in-memory database, fake clock, recording notifier and senders."""

import os

# Must be set before reminder_service modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BETTER_AUTH_SECRET"] = "test-secret"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import pytest
from sqlmodel import Session, SQLModel

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.clock import Clock
from reminder_service.db.session import engine
from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.models import AuditLog, NotificationDelivery, Reminder, User  # noqa: F401
from reminder_service.models.notification import NotificationChannel
from reminder_service.realtime.notifier import Notifier
from reminder_service.services.dispatcher import DeliveryDispatcher
from reminder_service.services.linked import LinkedReminderSync
from reminder_service.services.reminders import ReminderService

START = datetime(2026, 1, 5, 9, 0, 0)


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class RecordingNotifier(Notifier):
    """Notifier that keeps every published event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, Any]] = []

    def publish(self, user_id: UUID | str, event: str, data: Any) -> None:
        self.events.append((str(user_id), event, data))

    def named(self, event: str) -> list[tuple[str, str, Any]]:
        return [e for e in self.events if e[1] == event]


class FakeSender(ChannelSender):
    """Scriptable sender: succeeds, rejects (result=False) or raises (error)."""

    def __init__(
        self,
        channel: NotificationChannel,
        requires: str | None = None,
        result: bool = True,
        error: Exception | None = None,
    ) -> None:
        self._channel = channel
        self.requires = requires
        self.result = result
        self.error = error
        self.calls: list[tuple[Recipient, ChannelPayload]] = []

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    def can_deliver(self, recipient: Recipient) -> bool:
        if self.requires is None:
            return True
        return bool(getattr(recipient, self.requires))

    def address_of(self, recipient: Recipient) -> str | None:
        return getattr(recipient, self.requires) if self.requires else None

    def send(self, recipient: Recipient, payload: ChannelPayload) -> bool:
        self.calls.append((recipient, payload))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def db_session():
    """Fresh schema per test on the shared in-memory engine."""
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def test_user(db_session: Session) -> User:
    user = User(
        email="ada@example.com",
        display_name="Ada",
        push_token="device-token-1",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session: Session) -> User:
    user = User(email="grace@example.com", display_name="Grace")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def email_sender() -> FakeSender:
    return FakeSender(NotificationChannel.EMAIL, requires="email")


@pytest.fixture
def push_sender() -> FakeSender:
    return FakeSender(NotificationChannel.PUSH, requires="push_token")


@pytest.fixture
def dispatcher(notifier, email_sender, push_sender, clock):
    return DeliveryDispatcher(
        notifier,
        email_sender=email_sender,
        push_sender=push_sender,
        clock=clock,
    )


@pytest.fixture
def service(notifier, clock):
    return ReminderService(publisher=ReminderEventPublisher(notifier), clock=clock)


@pytest.fixture
def linked_sync(notifier, clock):
    return LinkedReminderSync(publisher=ReminderEventPublisher(notifier), clock=clock)
