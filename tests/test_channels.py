"""Tests for the email, push and in-app channel senders."""

from datetime import datetime
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from reminder_service.channels.base import ChannelPayload, Recipient
from reminder_service.channels.in_app import InAppSender
from reminder_service.channels.mail import SmtpEmailSender
from reminder_service.channels.push import FcmPushSender


@pytest.fixture
def payload() -> ChannelPayload:
    return ChannelPayload(
        reminder_id=uuid4(),
        reminder_type="meeting",
        message="Design sync",
        remind_at=datetime(2026, 1, 5, 9, 0),
        title="Reminder: Design sync",
        body="You have a meeting scheduled for 2026-01-05 09:00 UTC.",
        record={"id": "r1", "status": "sent"},
    )


@pytest.fixture
def recipient() -> Recipient:
    return Recipient(user_id=uuid4(), email="ada@example.com", push_token="device-token-1")


class TestSmtpEmailSender:
    """Tests for SmtpEmailSender."""

    def _sender(self, **overrides) -> SmtpEmailSender:
        params = {
            "smtp_server": "smtp.example.com",
            "smtp_port": 587,
            "from_email": "reminders@example.com",
            "smtp_username": "mailer",
            "smtp_password": "secret",
        }
        params.update(overrides)
        return SmtpEmailSender(**params)

    def test_requires_server_and_sender_address(self):
        with pytest.raises(ValueError):
            self._sender(smtp_server="")
        with pytest.raises(ValueError):
            self._sender(from_email="")

    def test_can_deliver_needs_email(self, recipient):
        sender = self._sender()

        assert sender.can_deliver(recipient)
        assert not sender.can_deliver(Recipient(user_id=uuid4()))

    def test_build_message(self, payload):
        msg = self._sender().build_message("ada@example.com", payload)

        assert msg["Subject"] == "Reminder: Design sync"
        assert msg["From"] == "reminders@example.com"
        assert msg["To"] == "ada@example.com"

    @patch("reminder_service.channels.mail.smtplib.SMTP")
    def test_send_uses_starttls_and_login(self, mock_smtp, recipient, payload):
        server = mock_smtp.return_value.__enter__.return_value
        server.sendmail.return_value = {}

        assert self._sender().send(recipient, payload) is True

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        args = server.sendmail.call_args[0]
        assert args[0] == "reminders@example.com"
        assert args[1] == ["ada@example.com"]

    @patch("reminder_service.channels.mail.smtplib.SMTP")
    def test_refused_recipient_returns_false(self, mock_smtp, recipient, payload):
        server = mock_smtp.return_value.__enter__.return_value
        server.sendmail.return_value = {"ada@example.com": (550, b"No such user")}

        assert self._sender().send(recipient, payload) is False

    @patch("reminder_service.channels.mail.smtplib.SMTP")
    def test_transport_error_propagates(self, mock_smtp, recipient, payload):
        mock_smtp.side_effect = ConnectionRefusedError("relay down")

        with pytest.raises(ConnectionRefusedError):
            self._sender().send(recipient, payload)


class TestFcmPushSender:
    """Tests for FcmPushSender."""

    def test_can_deliver_needs_token(self, recipient):
        sender = FcmPushSender(project_id="demo")

        assert sender.can_deliver(recipient)
        assert not sender.can_deliver(Recipient(user_id=uuid4(), email="x@example.com"))

    def test_build_message(self, payload):
        message = FcmPushSender(project_id="demo").build_message("device-token-1", payload)

        assert message.token == "device-token-1"
        assert message.notification.title == "Reminder: Design sync"
        assert message.data == {
            "reminder_id": str(payload.reminder_id),
            "reminder_type": "meeting",
            "remind_at": "2026-01-05T09:00:00",
        }

    @patch("reminder_service.channels.push.messaging.send")
    @patch("reminder_service.channels.push._ensure_firebase_initialized")
    def test_send(self, mock_init, mock_send, recipient, payload):
        mock_send.return_value = "projects/demo/messages/1"

        assert FcmPushSender(project_id="demo").send(recipient, payload) is True

        mock_init.assert_called_once_with("demo", None)
        sent = mock_send.call_args[0][0]
        assert sent.token == "device-token-1"


class TestInAppSender:
    """Tests for InAppSender."""

    def test_publishes_triggered_record(self, notifier, recipient, payload):
        sender = InAppSender(notifier)

        assert sender.send(recipient, payload) is True
        assert notifier.events == [(str(recipient.user_id), "reminderTriggered", payload.record)]

    def test_address_is_user_topic(self, recipient):
        sender = InAppSender(MagicMock())

        assert sender.address_of(recipient) == f"user:{recipient.user_id}"
