"""
Validation and storage of certificate images and project media.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from portfolio_backend.errors import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)
from portfolio_backend.storage import ObjectStore

logger = logging.getLogger(__name__)

MB = 1024 * 1024

IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
VIDEO_TYPES = ("video/mp4", "video/webm", "video/quicktime")


@dataclass(frozen=True)
class AssetPolicy:
    """What an asset class accepts and where it is stored."""

    label: str
    bucket: str
    allowed_mime_types: tuple[str, ...]
    max_image_bytes: int
    max_video_bytes: int
    type_error: str
    missing_error: str
    fetch_error: str

    def max_bytes(self, content_type: str) -> int:
        if is_video(content_type):
            return self.max_video_bytes
        return self.max_image_bytes


def is_video(content_type: str) -> bool:
    return content_type.startswith("video/")


def certificate_policy(bucket: str) -> AssetPolicy:
    return AssetPolicy(
        label="certificate",
        bucket=bucket,
        allowed_mime_types=IMAGE_TYPES + ("application/pdf",),
        max_image_bytes=10 * MB,
        max_video_bytes=10 * MB,
        type_error="Invalid file type. Only JPEG, PNG, WebP, and PDF are allowed.",
        missing_error="Missing file or certificate ID",
        fetch_error="Failed to get certificate image",
    )


def project_media_policy(bucket: str) -> AssetPolicy:
    return AssetPolicy(
        label="project media",
        bucket=bucket,
        allowed_mime_types=IMAGE_TYPES + VIDEO_TYPES,
        max_image_bytes=10 * MB,
        max_video_bytes=50 * MB,
        type_error=(
            "Invalid file type. Only JPEG, PNG, WebP, MP4, WebM, and QuickTime are allowed."
        ),
        missing_error="Missing file or project ID",
        fetch_error="Failed to get project media",
    )


@dataclass
class UploadResult:
    file_name: str
    signed_url: Optional[str]
    media_type: str


def build_file_name(owner_id: str, original_name: str, now_ms: int) -> str:
    extension = original_name.rsplit(".", 1)[-1]
    return f"{owner_id}-{now_ms}.{extension}"


class UploadService:
    """Stores one asset class in its bucket and signs URLs for it."""

    def __init__(
        self,
        store: ObjectStore,
        policy: AssetPolicy,
        *,
        upload_url_expiry: int = 365 * 24 * 60 * 60,
        fetch_url_expiry: int = 60 * 60,
    ):
        self.store = store
        self.policy = policy
        self.upload_url_expiry = upload_url_expiry
        self.fetch_url_expiry = fetch_url_expiry

    def validate(
        self, owner_id: Optional[str], file_name: Optional[str], content_type: str, size: int
    ) -> None:
        if not owner_id or not file_name:
            raise ValidationError(self.policy.missing_error)
        if content_type not in self.policy.allowed_mime_types:
            raise UnsupportedTypeError(self.policy.type_error)
        limit = self.policy.max_bytes(content_type)
        if size > limit:
            raise PayloadTooLargeError(
                f"File too large. Maximum size is {limit // MB}MB."
            )

    def upload(
        self,
        owner_id: Optional[str],
        *,
        file_name: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> UploadResult:
        content_type = content_type or ""
        self.validate(owner_id, file_name, content_type, len(data))

        stored_name = build_file_name(owner_id, file_name, int(time.time() * 1000))
        try:
            stored_name = self.store.put(
                self.policy.bucket,
                stored_name,
                data,
                content_type=content_type,
                upsert=True,
            )
        except StorageError as exc:
            logger.error("Upload error for %s: %s", self.policy.label, exc)
            raise StorageError("Failed to upload file") from exc

        signed_url = None
        try:
            signed_url = self.store.presign_get(
                self.policy.bucket, stored_name, expires_in=self.upload_url_expiry
            )
        except (StorageError, NotFoundError) as exc:
            logger.warning("Could not sign %s after upload: %s", stored_name, exc)

        logger.info(
            "Stored %s %s (%d bytes) in %s",
            self.policy.label,
            stored_name,
            len(data),
            self.policy.bucket,
        )
        return UploadResult(
            file_name=stored_name,
            signed_url=signed_url,
            media_type="video" if is_video(content_type) else "image",
        )

    def get_signed_url(self, file_name: str) -> str:
        try:
            return self.store.presign_get(
                self.policy.bucket, file_name, expires_in=self.fetch_url_expiry
            )
        except (StorageError, NotFoundError) as exc:
            logger.warning("Signing %s in %s failed: %s", file_name, self.policy.bucket, exc)
            raise NotFoundError(self.policy.fetch_error) from exc
