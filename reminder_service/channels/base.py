"""Channel sender abstraction.

Each sender delivers one payload to one recipient over one channel and
reports success. Senders may raise; the dispatcher isolates failures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from reminder_service.models.notification import NotificationChannel


@dataclass
class Recipient:
    """Contact data resolved from the reminder owner."""

    user_id: UUID
    email: str | None = None
    push_token: str | None = None
    display_name: str | None = None


@dataclass
class ChannelPayload:
    """What a channel delivers for one reminder."""

    reminder_id: UUID
    reminder_type: str
    message: str
    remind_at: datetime
    title: str
    body: str
    record: dict[str, Any] = field(default_factory=dict)


class ChannelSender(ABC):
    """Abstract sender for a single delivery channel."""

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """The channel this sender serves."""
        pass

    def can_deliver(self, recipient: Recipient) -> bool:
        """Whether the recipient has the contact data this channel needs."""
        return True

    def address_of(self, recipient: Recipient) -> str | None:
        """Recipient address recorded with the delivery attempt."""
        return None

    @abstractmethod
    def send(self, recipient: Recipient, payload: ChannelPayload) -> bool:
        """Deliver the payload.

        Returns:
            True on success, False if the provider rejected the message

        Raises:
            Exception: On transport or provider errors
        """
        pass
