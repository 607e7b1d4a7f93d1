"""
Key-value store abstraction for Redis, SQL databases and in-memory testing.

Values are arbitrary JSON-serializable objects stored under string keys.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Protocol

import redis
from sqlalchemy import JSON, Column, String, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_backend.errors import StorageError

_REDIS_GLOB_CHARS = re.compile(r"([*?\[\]\\])")


class KeyValueStore(Protocol):
    """Defines the operations the services need from the key-value store."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def get_by_prefix(self, prefix: str) -> list[Any]:
        ...

    def mget(self, keys: list[str]) -> list[Optional[Any]]:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store for development and tests."""

    def __init__(self):
        self.values: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so callers never share mutable state with us.
        self.values[key] = json.loads(json.dumps(value, default=str))

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def get_by_prefix(self, prefix: str) -> list[Any]:
        return [
            value for key, value in self.values.items() if key.startswith(prefix)
        ]

    def mget(self, keys: list[str]) -> list[Optional[Any]]:
        return [self.values.get(key) for key in keys]

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.values.clear()


Base = declarative_base()


class KvRow(Base):
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)


class SqlKeyValueStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlKeyValueStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[Any]:
        try:
            with self.Session() as session:
                row = session.get(KvRow, key)
                return row.value if row else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read key {key}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            with self.Session() as session:
                row = session.get(KvRow, key)
                if row:
                    row.value = value
                else:
                    session.add(KvRow(key=key, value=value))
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write key {key}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.Session() as session:
                session.execute(delete(KvRow).where(KvRow.key == key))
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete key {key}") from exc

    def get_by_prefix(self, prefix: str) -> list[Any]:
        try:
            with self.Session() as session:
                stmt = select(KvRow).where(
                    KvRow.key.startswith(prefix, autoescape=True)
                )
                return [row.value for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to scan prefix {prefix}") from exc

    def mget(self, keys: list[str]) -> list[Optional[Any]]:
        if not keys:
            return []
        try:
            with self.Session() as session:
                stmt = select(KvRow).where(KvRow.key.in_(keys))
                found = {row.key: row.value for row in session.execute(stmt).scalars()}
        except SQLAlchemyError as exc:
            raise StorageError("Failed to read keys") from exc
        return [found.get(key) for key in keys]


class RedisKeyValueStore:
    """Redis-backed store; values are JSON strings under a namespaced key."""

    def __init__(self, url: str, namespace: str = "portfolio"):
        self.url = url
        self.namespace = namespace
        self.client = redis.Redis.from_url(self.url)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @staticmethod
    def _decode(raw: Optional[bytes]) -> Optional[Any]:
        if raw is None:
            return None
        return json.loads(raw)

    def get(self, key: str) -> Optional[Any]:
        try:
            return self._decode(self.client.get(self._key(key)))
        except redis.RedisError as exc:
            raise StorageError(f"Failed to read key {key}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            self.client.set(self._key(key), json.dumps(value, default=str))
        except redis.RedisError as exc:
            raise StorageError(f"Failed to write key {key}") from exc

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as exc:
            raise StorageError(f"Failed to delete key {key}") from exc

    def get_by_prefix(self, prefix: str) -> list[Any]:
        pattern = _REDIS_GLOB_CHARS.sub(r"\\\1", self._key(prefix)) + "*"
        try:
            keys = list(self.client.scan_iter(match=pattern))
            if not keys:
                return []
            raw_values = self.client.mget(keys)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to scan prefix {prefix}") from exc
        # Keys can expire or be deleted between SCAN and MGET.
        return [self._decode(raw) for raw in raw_values if raw is not None]

    def mget(self, keys: list[str]) -> list[Optional[Any]]:
        if not keys:
            return []
        try:
            raw_values = self.client.mget([self._key(key) for key in keys])
        except redis.RedisError as exc:
            raise StorageError("Failed to read keys") from exc
        return [self._decode(raw) for raw in raw_values]
