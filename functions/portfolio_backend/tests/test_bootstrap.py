import unittest
from unittest.mock import MagicMock

from portfolio_backend.bootstrap import ensure_bucket, ensure_buckets
from portfolio_backend.errors import StorageError
from portfolio_backend.storage import InMemoryObjectStore
from portfolio_backend.uploads import certificate_policy, project_media_policy


class BootstrapTests(unittest.TestCase):
    def setUp(self):
        self.policies = [certificate_policy("certs"), project_media_policy("projects")]

    def test_creates_missing_buckets_once(self):
        store = InMemoryObjectStore()
        self.assertEqual(ensure_buckets(store, self.policies), {"certs": True, "projects": True})
        # A second cold start must not try to recreate anything.
        self.assertEqual(ensure_buckets(store, self.policies), {"certs": True, "projects": True})
        self.assertEqual(
            store.buckets["projects"].allowed_mime_types,
            list(self.policies[1].allowed_mime_types),
        )
        self.assertFalse(store.buckets["certs"].public)

    def test_existing_bucket_is_reconfigured_not_recreated(self):
        store = MagicMock()
        store.bucket_exists.return_value = True
        self.assertTrue(ensure_bucket(store, self.policies[0]))
        store.create_bucket.assert_not_called()
        store.configure_bucket.assert_called_once_with(
            "certs",
            allowed_mime_types=list(self.policies[0].allowed_mime_types),
            public=False,
        )

    def test_half_provisioned_bucket_is_finished_on_next_start(self):
        store = InMemoryObjectStore()
        store.create_bucket("projects", allowed_mime_types=[], public=True)
        ensure_buckets(store, self.policies)
        self.assertFalse(store.buckets["projects"].public)
        self.assertIn("video/mp4", store.buckets["projects"].allowed_mime_types)

    def test_failures_are_logged_not_raised(self):
        store = MagicMock()
        store.bucket_exists.return_value = False
        store.create_bucket.side_effect = [StorageError("denied"), None]
        with self.assertLogs("portfolio_backend.bootstrap", level="ERROR"):
            results = ensure_buckets(store, self.policies)
        self.assertEqual(results, {"certs": False, "projects": True})


if __name__ == "__main__":
    unittest.main()
