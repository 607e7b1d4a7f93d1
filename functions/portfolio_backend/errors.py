"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to; the application's
exception handlers render them as ``{"error": message}``.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Raised when required input is missing or malformed."""

    status_code = 400


class UnsupportedTypeError(ServiceError):
    """Raised when an uploaded file's MIME type is not allowed."""

    status_code = 400


class PayloadTooLargeError(ServiceError):
    """Raised when an uploaded file exceeds its size limit."""

    status_code = 400


class NotFoundError(ServiceError):
    """Raised when a message or stored object does not exist."""

    status_code = 404


class StorageError(ServiceError):
    """Raised when the key-value store or object storage fails."""

    status_code = 500
