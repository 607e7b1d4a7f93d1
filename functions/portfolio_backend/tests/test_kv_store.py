import json
import unittest
from unittest.mock import MagicMock, patch

import redis

from portfolio_backend.errors import StorageError
from portfolio_backend.kv_store import (
    InMemoryKeyValueStore,
    RedisKeyValueStore,
    SqlKeyValueStore,
)


class KeyValueContract:
    """Behaviour every key-value backend must share."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()

    def test_set_get_delete(self):
        self.store.set("message:1", {"id": "1", "read": False})
        self.assertEqual(self.store.get("message:1"), {"id": "1", "read": False})
        self.store.set("message:1", {"id": "1", "read": True})
        self.assertEqual(self.store.get("message:1"), {"id": "1", "read": True})
        self.store.delete("message:1")
        self.assertIsNone(self.store.get("message:1"))
        self.store.delete("message:1")

    def test_get_by_prefix(self):
        self.store.set("message:a", {"id": "a"})
        self.store.set("message:b", {"id": "b"})
        self.store.set("messages_archive", {"id": "x"})
        self.store.set("profile", {"id": "p"})
        found = sorted(item["id"] for item in self.store.get_by_prefix("message:"))
        self.assertEqual(found, ["a", "b"])

    def test_prefix_wildcards_are_literal(self):
        self.store.set("a_1", {"id": "underscore"})
        self.store.set("ab1", {"id": "letter"})
        found = [item["id"] for item in self.store.get_by_prefix("a_")]
        self.assertEqual(found, ["underscore"])

    def test_mget_keeps_order_and_gaps(self):
        self.store.set("k1", {"v": 1})
        self.store.set("k3", {"v": 3})
        self.assertEqual(
            self.store.mget(["k3", "k2", "k1"]), [{"v": 3}, None, {"v": 1}]
        )
        self.assertEqual(self.store.mget([]), [])


class InMemoryKeyValueStoreTests(KeyValueContract, unittest.TestCase):
    def make_store(self):
        return InMemoryKeyValueStore()

    def test_values_are_copied(self):
        value = {"tags": ["a"]}
        self.store.set("k", value)
        value["tags"].append("b")
        self.assertEqual(self.store.get("k"), {"tags": ["a"]})


class SqlKeyValueStoreTests(KeyValueContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store.
    """

    def make_store(self):
        return SqlKeyValueStore("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlKeyValueStore("")


class FakeRedis:
    """Just enough of redis.Redis for the store."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value.encode("utf-8")

    def delete(self, key):
        self.data.pop(key, None)

    def mget(self, keys):
        return [self.data.get(key) for key in keys]

    def scan_iter(self, match):
        import fnmatch

        return [key for key in self.data if fnmatch.fnmatchcase(key, match.replace("\\", ""))]


class RedisKeyValueStoreTests(unittest.TestCase):
    def setUp(self):
        self.fake = FakeRedis()
        with patch("portfolio_backend.kv_store.redis.Redis.from_url", return_value=self.fake):
            self.store = RedisKeyValueStore("redis://localhost:6379/0", namespace="site")

    def test_values_are_namespaced_json(self):
        self.store.set("message:1", {"id": "1"})
        self.assertEqual(json.loads(self.fake.data["site:message:1"]), {"id": "1"})
        self.assertEqual(self.store.get("message:1"), {"id": "1"})
        self.assertEqual(self.store.mget(["message:1", "message:2"]), [{"id": "1"}, None])

    def test_get_by_prefix_scans_namespace(self):
        self.store.set("message:1", {"id": "1"})
        self.store.set("message:2", {"id": "2"})
        self.store.set("other", {"id": "o"})
        found = sorted(item["id"] for item in self.store.get_by_prefix("message:"))
        self.assertEqual(found, ["1", "2"])
        self.assertEqual(self.store.get_by_prefix("missing:"), [])

    def test_glob_characters_are_escaped(self):
        client = MagicMock()
        client.scan_iter.return_value = []
        self.store.client = client
        self.store.get_by_prefix("m*[x]?:")
        client.scan_iter.assert_called_once_with(match="site:m\\*\\[x\\]\\?:*")

    def test_redis_errors_become_storage_errors(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("reset")
        client.set.side_effect = redis.ConnectionError("reset")
        self.store.client = client
        with self.assertRaises(StorageError):
            self.store.get("k")
        with self.assertRaises(StorageError):
            self.store.set("k", {})


if __name__ == "__main__":
    unittest.main()
