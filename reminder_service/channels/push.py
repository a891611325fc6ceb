"""Push channel: Firebase Cloud Messaging."""

import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, messaging

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.config import Settings
from reminder_service.models.notification import NotificationChannel

logger = logging.getLogger(__name__)


def _ensure_firebase_initialized(project_id: str | None, credentials_json: str | None) -> None:
    """Initialize the default Firebase app once.

    credentials_json may be inline service-account JSON or a file path.
    Without either, application default credentials are used.
    """
    if firebase_admin._apps:
        return

    options = {"projectId": project_id} if project_id else None

    if credentials_json and credentials_json.strip().startswith("{"):
        cred = credentials.Certificate(json.loads(credentials_json))
        firebase_admin.initialize_app(cred, options=options)
        logger.info("Firebase app initialized (inline credentials)")
    elif credentials_json and os.path.exists(credentials_json):
        cred = credentials.Certificate(credentials_json)
        firebase_admin.initialize_app(cred, options=options)
        logger.info("Firebase app initialized (credentials file)")
    else:
        firebase_admin.initialize_app(options=options)
        logger.info("Firebase app initialized (default credentials)")


class FcmPushSender(ChannelSender):
    """Sends reminder push notifications to the user's registered token."""

    def __init__(self, project_id: str | None = None, credentials_json: str | None = None) -> None:
        self.project_id = project_id
        self.credentials_json = credentials_json

    @classmethod
    def from_settings(cls, settings: Settings) -> "FcmPushSender":
        return cls(
            project_id=settings.FCM_PROJECT_ID or None,
            credentials_json=settings.FCM_CREDENTIALS_JSON or None,
        )

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def can_deliver(self, recipient: Recipient) -> bool:
        return bool(recipient.push_token)

    def address_of(self, recipient: Recipient) -> str | None:
        return recipient.push_token

    def build_message(self, token: str, payload: ChannelPayload) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=payload.title, body=payload.body),
            data={
                "reminder_id": str(payload.reminder_id),
                "reminder_type": payload.reminder_type,
                "remind_at": payload.remind_at.isoformat(),
            },
        )

    def send(self, recipient: Recipient, payload: ChannelPayload) -> bool:
        _ensure_firebase_initialized(self.project_id, self.credentials_json)
        message_id = messaging.send(self.build_message(recipient.push_token, payload))
        logger.info(
            "Push notification sent",
            extra={"reminder_id": str(payload.reminder_id), "message_id": message_id},
        )
        return bool(message_id)
