"""Delivery sinks used by the dispatcher.

A channel delivers one message to one recipient (or to everyone connected
when the recipient is ``None``) and raises ``NotificationDeliveryError`` when
that single delivery fails. Channels never touch the store.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
import logging
import smtplib
import ssl
from typing import Protocol

from anyio import from_thread

from subfinder.core.config import Settings
from subfinder.core.exceptions import NotificationDeliveryError
from subfinder.models.notification_log import NotificationType
from subfinder.schemas.user import UserOut
from subfinder.services.notification_hub import NotificationHub, notification_hub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundNotification:
    notification_id: str
    title: str
    body: str
    request_id: str | None = None
    user_id: str | None = None


class NotificationChannel(Protocol):
    notification_type: NotificationType

    def deliver(self, recipient: UserOut | None, message: OutboundNotification) -> None:
        ...


def notification_to_event_payload(message: OutboundNotification, *, kind: NotificationType) -> dict:
    return {
        "event": "notification.created",
        "notification": {
            "id": message.notification_id,
            "title": message.title,
            "body": message.body,
            "request_id": message.request_id,
            "user_id": message.user_id,
            "notification_type": kind.value,
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    }


class RealtimeChannel:
    """Pushes notifications to the desktop client's websocket."""

    notification_type = NotificationType.desktop

    def __init__(self, hub: NotificationHub | None = None) -> None:
        self._hub = hub or notification_hub

    def deliver(self, recipient: UserOut | None, message: OutboundNotification) -> None:
        if recipient is not None and not recipient.is_active:
            raise NotificationDeliveryError(
                "Recipient account is inactive",
                details={"user_id": recipient.id},
            )
        payload = notification_to_event_payload(message, kind=self.notification_type)
        try:
            if recipient is None:
                delivered = from_thread.run(self._hub.broadcast, payload)
            else:
                delivered = from_thread.run(self._hub.publish, recipient.id, payload)
        except RuntimeError as exc:
            # Only the server's worker threads can reach the hub's event loop.
            logger.debug("No event loop available to push notification %s", message.notification_id)
            raise NotificationDeliveryError("Realtime delivery is unavailable outside the server") from exc

        if delivered == 0:
            if recipient is None:
                raise NotificationDeliveryError("No desktop clients are connected")
            raise NotificationDeliveryError(
                "Recipient is not connected",
                details={"user_id": recipient.id},
            )


class EmailChannel:
    """Sends notifications by SMTP using the configured account."""

    notification_type = NotificationType.email

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_message(self, to_email: str, message: OutboundNotification) -> EmailMessage:
        settings = self._settings
        email = EmailMessage()
        sender = settings.smtp_from_email or ""
        email["From"] = f"{settings.smtp_from_name} <{sender}>" if settings.smtp_from_name else sender
        email["To"] = to_email
        email["Subject"] = f"Substitute Finder: {message.title}"
        email.set_content(f"{message.title}\n\n{message.body}")
        return email

    def deliver(self, recipient: UserOut | None, message: OutboundNotification) -> None:
        settings = self._settings
        if not settings.smtp_configured:
            raise NotificationDeliveryError("SMTP is not configured")
        if recipient is None or not recipient.email:
            raise NotificationDeliveryError("Recipient has no email address")

        email = self._build_message(recipient.email, message)
        timeout = max(1, settings.smtp_timeout_seconds)
        try:
            if settings.smtp_use_ssl:
                with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=timeout) as smtp:
                    if settings.smtp_username:
                        smtp.login(settings.smtp_username, settings.smtp_password or "")
                    smtp.send_message(email)
                return

            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=timeout) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if settings.smtp_username:
                    smtp.login(settings.smtp_username, settings.smtp_password or "")
                smtp.send_message(email)
        except smtplib.SMTPAuthenticationError as exc:
            raise NotificationDeliveryError("SMTP authentication failed") from exc
        except smtplib.SMTPRecipientsRefused as exc:
            raise NotificationDeliveryError("SMTP recipient rejected") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationDeliveryError("SMTP delivery failed", details={"error": str(exc)}) from exc


def build_channel(settings: Settings) -> NotificationChannel:
    if settings.notification_channel == "email":
        return EmailChannel(settings)
    return RealtimeChannel()
