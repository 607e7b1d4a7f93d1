"""
Contact-form inbox backed by the key-value store.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from portfolio_backend.errors import NotFoundError, StorageError, ValidationError
from portfolio_backend.kv_store import KeyValueStore
from portfolio_backend.notifications import Notifier

logger = logging.getLogger(__name__)

MESSAGE_PREFIX = "message:"
DEFAULT_SUBJECT = "No Subject"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T10:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def message_key(message_id: str) -> str:
    return f"{MESSAGE_PREFIX}{message_id}"


@dataclass
class Message:
    id: str
    name: str
    email: str
    subject: str
    message: str
    timestamp: str
    read: bool = False

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "timestamp": self.timestamp,
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            subject=data.get("subject") or DEFAULT_SUBJECT,
            message=data["message"],
            timestamp=data["timestamp"],
            read=bool(data.get("read", False)),
        )


class MessageService:
    """Durable inbox for contact-form submissions."""

    def __init__(self, store: KeyValueStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    def submit(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        message: Optional[str],
        subject: Optional[str] = None,
    ) -> str:
        if not name or not email or not message:
            raise ValidationError("Missing required fields")

        record = Message(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            subject=subject or DEFAULT_SUBJECT,
            message=message,
            timestamp=utc_timestamp(),
            read=False,
        )
        try:
            self.store.set(message_key(record.id), record.as_dict())
        except StorageError as exc:
            logger.error("Contact form error: %s", exc)
            raise StorageError("Failed to send message") from exc

        try:
            self.notifier.send(record)
        except Exception:
            logger.exception("Error sending notification for message %s", record.id)

        logger.info("Stored message %s from %s", record.id, record.email)
        return record.id

    def list_all(self) -> list[Message]:
        try:
            raw = self.store.get_by_prefix(MESSAGE_PREFIX)
        except StorageError as exc:
            logger.error("Get messages error: %s", exc)
            raise StorageError("Failed to fetch messages") from exc
        dated: list[tuple[datetime, Message]] = []
        for item in raw:
            try:
                record = Message.from_dict(item)
                dated.append((parse_timestamp(record.timestamp), record))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed message record: %r", item)
        dated.sort(key=lambda pair: pair[0], reverse=True)
        return [record for _, record in dated]

    def mark_read(self, message_id: str) -> Message:
        key = message_key(message_id)
        try:
            [existing] = self.store.mget([key])
        except StorageError as exc:
            logger.error("Mark message read error: %s", exc)
            raise StorageError("Failed to update message") from exc
        if not existing:
            raise NotFoundError("Message not found")

        record = Message.from_dict(existing)
        record.read = True
        try:
            self.store.set(key, record.as_dict())
        except StorageError as exc:
            logger.error("Mark message read error: %s", exc)
            raise StorageError("Failed to update message") from exc
        return record

    def delete(self, message_id: str) -> None:
        try:
            self.store.delete(message_key(message_id))
        except StorageError as exc:
            logger.error("Delete message error: %s", exc)
            raise StorageError("Failed to delete message") from exc
