"""
Object storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from portfolio_backend.errors import NotFoundError, StorageError

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectStore(Protocol):
    """Defines the operations the upload service needs from object storage."""

    def bucket_exists(self, bucket: str) -> bool:
        ...

    def create_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        ...

    def configure_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        ...

    def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        ...

    def presign_get(self, bucket: str, name: str, expires_in: int = 3600) -> str:
        ...


@dataclass
class StoredObject:
    data: bytes
    content_type: str


@dataclass
class BucketInfo:
    name: str
    allowed_mime_types: list[str]
    public: bool = False


@dataclass
class InMemoryObjectStore:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    buckets: dict = field(default_factory=dict)
    stored_objects: dict = field(default_factory=dict)

    def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.buckets

    def create_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        if bucket in self.buckets:
            raise StorageError(f"Bucket {bucket} already exists")
        self.buckets[bucket] = BucketInfo(
            name=bucket, allowed_mime_types=list(allowed_mime_types), public=public
        )

    def configure_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        info = self.buckets.get(bucket)
        if info is None:
            raise StorageError(f"Bucket {bucket} does not exist")
        info.allowed_mime_types = list(allowed_mime_types)
        info.public = public

    def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        info = self.buckets.get(bucket)
        if info is None:
            raise StorageError(f"Bucket {bucket} does not exist")
        if content_type not in info.allowed_mime_types:
            raise StorageError(f"Content type {content_type} rejected by {bucket}")
        if not upsert and (bucket, name) in self.stored_objects:
            raise StorageError(f"Object {name} already exists in {bucket}")
        self.stored_objects[(bucket, name)] = StoredObject(
            data=bytes(data), content_type=content_type
        )
        return name

    def presign_get(self, bucket: str, name: str, expires_in: int = 3600) -> str:
        if (bucket, name) not in self.stored_objects:
            raise NotFoundError(f"Object {name} not found in {bucket}")
        return f"{self.base_url}/{bucket}/{name}?op=get&expires={expires_in}"

    def reset(self) -> None:
        """Drop all buckets and objects (useful in tests)."""
        self.buckets.clear()
        self.stored_objects.clear()


@dataclass
class S3ObjectStore:
    """
    Object store backed by any S3-compatible service.

    S3 has no bucket-level MIME allowlist, so the allowlist is recorded as a
    bucket tag and enforced by the upload service.
    """

    endpoint: Optional[str]
    region: Optional[str]
    access_key_id: str
    secret_access_key: str
    addressing_style: str = "auto"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": self.addressing_style},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def bucket_exists(self, bucket: str) -> bool:
        try:
            response = self._client.list_buckets()
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to list buckets") from exc
        return any(item.get("Name") == bucket for item in response.get("Buckets", []))

    def create_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        params: dict = {"Bucket": bucket}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {
                "LocationConstraint": self.region
            }
        try:
            self._client.create_bucket(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to create bucket {bucket}") from exc
        self.configure_bucket(
            bucket, allowed_mime_types=allowed_mime_types, public=public
        )

    def configure_bucket(
        self, bucket: str, *, allowed_mime_types: list[str], public: bool = False
    ) -> None:
        """Apply access block and allowlist tag; safe to repeat."""
        try:
            if not public:
                self._client.put_public_access_block(
                    Bucket=bucket,
                    PublicAccessBlockConfiguration={
                        "BlockPublicAcls": True,
                        "IgnorePublicAcls": True,
                        "BlockPublicPolicy": True,
                        "RestrictPublicBuckets": True,
                    },
                )
            # Tag values may not contain commas.
            self._client.put_bucket_tagging(
                Bucket=bucket,
                Tagging={
                    "TagSet": [
                        {
                            "Key": "allowed-mime-types",
                            "Value": " ".join(allowed_mime_types),
                        }
                    ]
                },
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to configure bucket {bucket}") from exc

    def object_exists(self, bucket: str, name: str) -> bool:
        try:
            self._client.head_object(Bucket=bucket, Key=name)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"Failed to look up {name} in {bucket}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to look up {name} in {bucket}") from exc
        return True

    def put(
        self,
        bucket: str,
        name: str,
        data: bytes,
        *,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        if not upsert and self.object_exists(bucket, name):
            raise StorageError(f"Object {name} already exists in {bucket}")
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {name} to {bucket}") from exc
        return name

    def presign_get(self, bucket: str, name: str, expires_in: int = 3600) -> str:
        # Presigning is local, so check the object exists first.
        if not self.object_exists(bucket, name):
            raise NotFoundError(f"Object {name} not found in {bucket}")
        try:
            return self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": name},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to sign {name} in {bucket}") from exc
