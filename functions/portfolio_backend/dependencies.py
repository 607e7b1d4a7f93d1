"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from portfolio_backend.config import get_settings
from portfolio_backend.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    SqlKeyValueStore,
)
from portfolio_backend.messages import MessageService
from portfolio_backend.notifications import LoggingNotifier, Notifier, WebhookNotifier
from portfolio_backend.storage import InMemoryObjectStore, ObjectStore, S3ObjectStore
from portfolio_backend.uploads import (
    AssetPolicy,
    UploadService,
    certificate_policy,
    project_media_policy,
)

logger = logging.getLogger(__name__)

_kv_store: KeyValueStore | None = None
_object_store: ObjectStore | None = None


def get_kv_store() -> KeyValueStore:
    """
    Return a singleton key-value store so messages persist across requests.
    """
    global _kv_store
    if _kv_store:
        return _kv_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _kv_store = InMemoryKeyValueStore()
    elif settings.redis_url:
        _kv_store = RedisKeyValueStore(
            url=settings.redis_url, namespace=settings.redis_key_namespace
        )
    elif settings.database_url:
        _kv_store = SqlKeyValueStore(settings.database_url)
    else:
        _kv_store = InMemoryKeyValueStore()
    logger.info("Using %s for key-value storage", type(_kv_store).__name__)
    return _kv_store


def get_object_store() -> ObjectStore:
    global _object_store
    if _object_store:
        return _object_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.aws_access_key_id:
        _object_store = InMemoryObjectStore()
    else:
        _object_store = S3ObjectStore(
            endpoint=settings.s3_endpoint,
            region=settings.s3_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key or "",
            addressing_style=settings.s3_addressing_style,
        )
    logger.info("Using %s for object storage", type(_object_store).__name__)
    return _object_store


def get_notifier() -> Notifier:
    settings = get_settings()
    if settings.notification_webhook_url:
        return WebhookNotifier(
            url=settings.notification_webhook_url,
            recipient=settings.notification_email,
            timeout=settings.notification_timeout,
        )
    return LoggingNotifier(recipient=settings.notification_email)


def get_asset_policies() -> list[AssetPolicy]:
    settings = get_settings()
    return [
        certificate_policy(settings.certificates_bucket),
        project_media_policy(settings.project_media_bucket),
    ]


def get_message_service() -> MessageService:
    return MessageService(get_kv_store(), get_notifier())


def _upload_service(policy: AssetPolicy) -> UploadService:
    settings = get_settings()
    return UploadService(
        get_object_store(),
        policy,
        upload_url_expiry=settings.upload_signed_url_expiry,
        fetch_url_expiry=settings.fetch_signed_url_expiry,
    )


def get_certificate_uploads() -> UploadService:
    return _upload_service(certificate_policy(get_settings().certificates_bucket))


def get_project_media_uploads() -> UploadService:
    return _upload_service(project_media_policy(get_settings().project_media_bucket))
