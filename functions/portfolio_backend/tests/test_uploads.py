import unittest
from unittest.mock import MagicMock, patch

from portfolio_backend.bootstrap import ensure_buckets
from portfolio_backend.errors import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)
from portfolio_backend.storage import InMemoryObjectStore
from portfolio_backend.uploads import (
    MB,
    UploadService,
    build_file_name,
    certificate_policy,
    project_media_policy,
)


class UploadServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryObjectStore()
        self.certificates = UploadService(self.store, certificate_policy("certs"))
        self.media = UploadService(self.store, project_media_policy("projects"))
        ensure_buckets(self.store, [self.certificates.policy, self.media.policy])

    def test_certificate_pdf_upload(self):
        with patch("portfolio_backend.uploads.time.time", return_value=1700000000.5):
            result = self.certificates.upload(
                "cert1", file_name="x.pdf", content_type="application/pdf", data=b"0" * MB
            )
        self.assertEqual(result.file_name, "cert1-1700000000500.pdf")
        self.assertIn("expires=31536000", result.signed_url)
        self.assertEqual(result.media_type, "image")
        stored = self.store.stored_objects[("certs", result.file_name)]
        self.assertEqual(stored.content_type, "application/pdf")

    def test_missing_owner_or_file(self):
        with self.assertRaises(ValidationError):
            self.certificates.upload(
                "", file_name="x.png", content_type="image/png", data=b"1"
            )
        with self.assertRaises(ValidationError):
            self.media.upload("p1", file_name=None, content_type=None, data=b"")

    def test_disallowed_type_regardless_of_size(self):
        for size in (0, 1, 11 * MB):
            with self.subTest(size=size):
                with self.assertRaises(UnsupportedTypeError):
                    self.certificates.upload(
                        "c", file_name="a.zip", content_type="application/zip", data=b"0" * size
                    )
        with self.assertRaises(UnsupportedTypeError):
            self.media.upload(
                "p", file_name="doc.pdf", content_type="application/pdf", data=b"0"
            )

    def test_size_limits(self):
        with self.assertRaises(PayloadTooLargeError):
            self.media.upload(
                "p", file_name="a.png", content_type="image/png", data=b"0" * (10 * MB + 1)
            )
        with self.assertRaises(PayloadTooLargeError) as ctx:
            self.media.upload(
                "p", file_name="a.webm", content_type="video/webm", data=b"0" * (50 * MB + 1)
            )
        self.assertEqual(ctx.exception.message, "File too large. Maximum size is 50MB.")

        result = self.media.upload(
            "p", file_name="a.mov", content_type="video/quicktime", data=b"0" * (50 * MB)
        )
        self.assertEqual(result.media_type, "video")
        self.assertTrue(result.file_name.endswith(".mov"))

        image = self.media.upload(
            "p", file_name="a.webp", content_type="image/webp", data=b"0" * (10 * MB)
        )
        self.assertEqual(image.media_type, "image")

    def test_write_failure_is_storage_error(self):
        store = MagicMock()
        store.put.side_effect = StorageError("bucket gone")
        service = UploadService(store, certificate_policy("certs"))
        with self.assertRaises(StorageError) as ctx:
            service.upload("c", file_name="a.png", content_type="image/png", data=b"1")
        self.assertEqual(ctx.exception.message, "Failed to upload file")
        store.presign_get.assert_not_called()

    def test_signing_failure_after_write_returns_null_url(self):
        store = MagicMock()
        store.put.side_effect = lambda bucket, name, data, **kwargs: name
        store.presign_get.side_effect = StorageError("signer down")
        service = UploadService(store, certificate_policy("certs"))
        result = service.upload("c", file_name="a.png", content_type="image/png", data=b"1")
        self.assertIsNone(result.signed_url)
        self.assertTrue(result.file_name.startswith("c-"))

    def test_get_signed_url(self):
        result = self.media.upload(
            "p", file_name="a.png", content_type="image/png", data=b"1"
        )
        url = self.media.get_signed_url(result.file_name)
        self.assertIn("expires=3600", url)
        with self.assertRaises(NotFoundError) as ctx:
            self.certificates.get_signed_url(result.file_name)
        self.assertEqual(ctx.exception.message, "Failed to get certificate image")


class FileNameTests(unittest.TestCase):
    def test_extension_is_last_dot_segment(self):
        self.assertEqual(build_file_name("a", "my.cert.final.PNG", 5), "a-5.PNG")
        self.assertEqual(build_file_name("a", "noext", 5), "a-5.noext")


if __name__ == "__main__":
    unittest.main()
