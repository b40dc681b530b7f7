"""
Object storage and presigned access ports.

Implementations: local filesystem (development, tests) and S3 (production).

Keys are bucket-relative paths without a leading slash, e.g.
"temp/<owner>/1718000000000-photo.jpg" or "public/<owner>/<post>/photo.jpg".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass
class StoredObject:
    """Metadata for a stored object."""

    key: str
    size_bytes: int
    content_type: str
    sha256: str
    etag: str


class ObjectStoragePort(Protocol):
    """
    Object storage primitives consumed by the asset lifecycle manager.

    Every method may raise StorageError (or a subclass) on backend failure.
    """

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """Store bytes under key, replacing any previous object."""
        ...

    def get(self, key: str) -> tuple[bytes, StoredObject]:
        """
        Retrieve object bytes by key.

        Raises:
            KeyNotFoundError: If key doesn't exist
        """
        ...

    def exists(self, key: str) -> bool:
        """Check if key exists in storage."""
        ...

    def copy(self, source_key: str, dest_key: str) -> StoredObject:
        """
        Server-side copy of source_key to dest_key.

        Raises:
            KeyNotFoundError: If source_key doesn't exist
        """
        ...

    def delete(self, key: str) -> bool:
        """
        Delete object by key.

        Returns:
            True if deleted, False if key didn't exist
        """
        ...


class PresignerPort(Protocol):
    """Issues time-bounded upload and view URLs for object keys."""

    def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        """Signed URL the client PUTs the object bytes to."""
        ...

    def issue_view_url(self, key: str, expires_in: int) -> str:
        """Signed URL for reading a private object."""
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class KeyNotFoundError(StorageError):
    """Raised when key doesn't exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Key not found: {key}")


class IntegrityError(StorageError):
    """Raised when data integrity check fails."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Integrity check failed: expected {expected}, got {actual}")
