"""Tests for the real-time layer: connection manager and event publisher."""

import asyncio
from datetime import datetime
from uuid import uuid4

from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.events.types import ReminderEvent, ReminderEventType
from reminder_service.realtime.manager import ConnectionManager
from reminder_service.realtime.notifier import LoggingNotifier, Notifier, topic_for


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


class ExplodingNotifier(Notifier):
    def publish(self, user_id, event, data) -> None:
        raise RuntimeError("transport down")


def test_topic_for():
    user_id = uuid4()
    assert topic_for(user_id) == f"user:{user_id}"


class TestConnectionManager:
    """Tests for ConnectionManager."""

    def test_connect_and_disconnect(self):
        manager = ConnectionManager()
        user_id = uuid4()
        ws = FakeWebSocket()

        async def scenario():
            await manager.connect(ws, user_id)
            assert manager.connection_count(user_id) == 1
            manager.disconnect(ws, user_id)

        asyncio.run(scenario())

        assert ws.accepted
        assert manager.connection_count(user_id) == 0
        assert manager.active_connections == {}

    def test_publish_without_clients_is_noop(self):
        ConnectionManager().publish(uuid4(), "newReminder", {"id": "x"})

    def test_publish_on_loop_reaches_only_recipient(self):
        manager = ConnectionManager()
        owner, stranger = uuid4(), uuid4()
        owner_ws, stranger_ws = FakeWebSocket(), FakeWebSocket()

        async def scenario():
            await manager.connect(owner_ws, owner)
            await manager.connect(stranger_ws, stranger)
            manager.publish(owner, "reminderTriggered", {"id": "r1"})
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert owner_ws.sent == [{"event": "reminderTriggered", "data": {"id": "r1"}}]
        assert stranger_ws.sent == []

    def test_publish_on_loop_holds_task_until_done(self):
        manager = ConnectionManager()
        user_id = uuid4()
        ws = FakeWebSocket()

        async def scenario():
            await manager.connect(ws, user_id)
            manager.publish(user_id, "reminderUpdated", {"id": "r5"})
            assert len(manager._pending_tasks) == 1
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert manager._pending_tasks == set()
        assert ws.sent == [{"event": "reminderUpdated", "data": {"id": "r5"}}]

    def test_publish_from_worker_thread(self):
        """publish() from another thread is scheduled onto the connection's loop."""
        manager = ConnectionManager()
        user_id = uuid4()
        ws = FakeWebSocket()

        async def scenario():
            await manager.connect(ws, user_id)
            await asyncio.to_thread(manager.publish, user_id, "newReminder", {"id": "r2"})
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert ws.sent == [{"event": "newReminder", "data": {"id": "r2"}}]

    def test_failed_send_does_not_raise(self):
        manager = ConnectionManager()
        user_id = uuid4()
        broken, healthy = FakeWebSocket(fail=True), FakeWebSocket()

        async def scenario():
            await manager.connect(broken, user_id)
            await manager.connect(healthy, user_id)
            manager.publish(user_id, "newReminder", {"id": "r3"})
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert healthy.sent == [{"event": "newReminder", "data": {"id": "r3"}}]


class TestReminderEventPublisher:
    """Tests for ReminderEventPublisher."""

    def _event(self) -> ReminderEvent:
        return ReminderEvent(
            event_type=ReminderEventType.REMINDER_DELETED,
            owner_id=uuid4(),
            data="some-id",
            timestamp=datetime(2026, 1, 5, 9, 0),
        )

    def test_without_notifier_returns_false(self):
        assert ReminderEventPublisher().publish(self._event()) is False

    def test_notifier_error_swallowed(self):
        assert ReminderEventPublisher(ExplodingNotifier()).publish(self._event()) is False

    def test_delivers_to_notifier(self, notifier):
        event = self._event()

        assert ReminderEventPublisher(notifier).publish(event) is True
        assert notifier.events == [(str(event.owner_id), "reminderDeleted", "some-id")]

    def test_logging_notifier_accepts_events(self):
        LoggingNotifier().publish(uuid4(), "reminderTriggered", {"id": "r4"})
