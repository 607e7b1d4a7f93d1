"""
Best-effort notifications for new contact-form messages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol

import requests

if TYPE_CHECKING:
    from portfolio_backend.messages import Message

logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECT = "New Portfolio Message Received"


class Notifier(Protocol):
    def send(self, message: "Message") -> None:
        ...


@dataclass
class LoggingNotifier:
    """Logs the notification that would be delivered."""

    recipient: Optional[str] = None

    def send(self, message: "Message") -> None:
        logger.info(
            "Notification for %s: %s from %s <%s> (subject %r, sent at %s): %s",
            self.recipient or "site owner",
            NOTIFICATION_SUBJECT,
            message.name,
            message.email,
            message.subject,
            message.timestamp,
            message.message,
        )


@dataclass
class WebhookNotifier:
    """POSTs new messages as JSON to an HTTP webhook."""

    url: str
    recipient: Optional[str] = None
    timeout: float = 10.0

    def send(self, message: "Message") -> None:
        payload = {
            "subject": NOTIFICATION_SUBJECT,
            "recipient": self.recipient,
            "message": message.as_dict(),
        }
        response = requests.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        logger.info("Notification for message %s delivered", message.id)
