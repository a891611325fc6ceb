"""Email channel: transactional mail through an SMTP relay."""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.config import Settings
from reminder_service.models.notification import NotificationChannel

logger = logging.getLogger(__name__)


class SmtpEmailSender(ChannelSender):
    """Sends reminder emails over SMTP with STARTTLS."""

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        from_email: str,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not smtp_server:
            raise ValueError("SMTP_SERVER is required but not configured")
        if not from_email:
            raise ValueError("FROM_EMAIL is required but not configured")

        self.smtp_server = smtp_server
        self.smtp_port = int(smtp_port)
        self.from_email = from_email
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpEmailSender":
        return cls(
            smtp_server=settings.SMTP_SERVER,
            smtp_port=settings.SMTP_PORT,
            from_email=settings.FROM_EMAIL,
            smtp_username=settings.SMTP_USERNAME or None,
            smtp_password=settings.SMTP_PASSWORD or None,
        )

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def can_deliver(self, recipient: Recipient) -> bool:
        return bool(recipient.email)

    def address_of(self, recipient: Recipient) -> str | None:
        return recipient.email

    def build_message(self, to_email: str, payload: ChannelPayload) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = payload.title
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(payload.body, "plain"))
        return msg

    def send(self, recipient: Recipient, payload: ChannelPayload) -> bool:
        msg = self.build_message(recipient.email, payload)

        context = ssl.create_default_context()
        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
            server.starttls(context=context)
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            refused = server.sendmail(self.from_email, [recipient.email], msg.as_string())

        if refused:
            logger.warning(
                "Email recipient refused",
                extra={"reminder_id": str(payload.reminder_id), "refused": list(refused)},
            )
            return False

        logger.info(
            "Email sent",
            extra={"reminder_id": str(payload.reminder_id), "subject": payload.title},
        )
        return True
