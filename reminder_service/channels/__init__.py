"""Delivery channel senders: in-app, email and push."""

from reminder_service.channels.base import ChannelPayload, ChannelSender, Recipient
from reminder_service.channels.mail import SmtpEmailSender
from reminder_service.channels.in_app import InAppSender
from reminder_service.channels.push import FcmPushSender

__all__ = [
    "ChannelSender",
    "ChannelPayload",
    "Recipient",
    "InAppSender",
    "SmtpEmailSender",
    "FcmPushSender",
]
