"""WebSocket connection registry implementing the Notifier interface."""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any
from uuid import UUID

from fastapi import WebSocket

from reminder_service.realtime.notifier import Notifier, topic_for

logger = logging.getLogger(__name__)


class ConnectionManager(Notifier):
    """Tracks open WebSockets per user topic and pushes events to them.

    publish() may be called from any thread (sync API handlers run in a
    threadpool, the scheduler runs in its own thread); frames are sent on
    the event loop that accepted the connection.
    """

    def __init__(self) -> None:
        self.active_connections: dict[str, list[WebSocket]] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = threading.Lock()
        # Strong references to in-flight sends made on the loop thread
        self._pending_tasks: set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket, user_id: UUID | str) -> None:
        # Visible to publish() before the client sees the handshake
        self._loop = asyncio.get_running_loop()
        topic = topic_for(user_id)
        with self._lock:
            self.active_connections.setdefault(topic, []).append(websocket)
        try:
            await websocket.accept()
        except Exception:
            self.disconnect(websocket, user_id)
            raise
        logger.info("Client connected", extra={"topic": topic})

    def disconnect(self, websocket: WebSocket, user_id: UUID | str) -> None:
        topic = topic_for(user_id)
        with self._lock:
            connections = self.active_connections.get(topic)
            if connections and websocket in connections:
                connections.remove(websocket)
                if not connections:
                    del self.active_connections[topic]
        logger.info("Client disconnected", extra={"topic": topic})

    def connection_count(self, user_id: UUID | str) -> int:
        with self._lock:
            return len(self.active_connections.get(topic_for(user_id), []))

    def publish(self, user_id: UUID | str, event: str, data: Any) -> None:
        topic = topic_for(user_id)
        with self._lock:
            connections = list(self.active_connections.get(topic, []))
        if not connections or self._loop is None:
            logger.debug("No connected clients", extra={"topic": topic, "event": event})
            return

        message = {"event": event, "data": data}
        for connection in connections:
            self._schedule(connection.send_json(message), topic, event)

    def _schedule(self, coro, topic: str, event: str) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            task = self._loop.create_task(coro)
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)
            task.add_done_callback(lambda t: self._log_failure(t, topic, event))
        else:
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
            future.add_done_callback(lambda f: self._log_failure(f, topic, event))

    @staticmethod
    def _log_failure(result: "Future | asyncio.Task", topic: str, event: str) -> None:
        if result.cancelled():
            return
        error = result.exception()
        if error is not None:
            logger.warning(
                "Real-time push failed",
                extra={"topic": topic, "event": event, "error": str(error)},
            )
