"""Notifier interface consumed by the dispatcher and event publisher."""

import logging
from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID


def topic_for(user_id: UUID | str) -> str:
    """Recipient-scoped topic name."""
    return f"user:{user_id}"


class Notifier(ABC):
    """Publishes named events to a recipient's real-time topic.

    Implementations are fire-and-forget: publish() must not block on
    delivery and must not raise for recipients with no connected client.
    """

    @abstractmethod
    def publish(self, user_id: UUID | str, event: str, data: Any) -> None:
        """Publish an event to every client connected as user_id."""
        pass


class LoggingNotifier(Notifier):
    """Notifier for processes without connected clients (standalone scheduler).

    Events are written to the log only.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)

    def publish(self, user_id: UUID | str, event: str, data: Any) -> None:
        self._logger.info(
            "No real-time transport, event logged only",
            extra={"topic": topic_for(user_id), "event": event},
        )
