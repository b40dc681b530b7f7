"""
Error taxonomy for post editing.

Fatal errors (Unauthorized, PostNotFound, TransactionFailed and a storage
phase that runs out of time) end an edit. InvalidAssetReference and
per-asset StorageOperationFailed are caught by the reconciliation engine,
logged, and only shrink the set of images that gets persisted.
"""

from __future__ import annotations

from uuid import UUID


class FolioError(Exception):
    """Base class for folio errors. Carries a stable machine-readable code."""

    code = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Unauthorized(FolioError):
    """Caller is not the owner of the post."""

    code = "unauthorized"

    def __init__(self, post_id: UUID, user_id: UUID) -> None:
        self.post_id = post_id
        self.user_id = user_id
        super().__init__(f"User {user_id} may not modify post {post_id}")


class PostNotFound(FolioError):
    code = "post_not_found"

    def __init__(self, post_id: UUID) -> None:
        self.post_id = post_id
        super().__init__(f"Post not found: {post_id}")


class InvalidAssetReference(FolioError):
    """A url or key cannot be reduced to a storage key."""

    code = "invalid_asset_reference"

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Invalid asset reference {reference!r}: {reason}")


class StorageOperationFailed(FolioError):
    code = "storage_operation_failed"

    def __init__(self, operation: str, key: str | None, reason: str) -> None:
        self.operation = operation
        self.key = key
        self.reason = reason
        target = f" {key}" if key else ""
        super().__init__(f"Storage {operation}{target} failed: {reason}")


class TransactionFailed(FolioError):
    code = "transaction_failed"

    def __init__(self, post_id: UUID, reason: str) -> None:
        self.post_id = post_id
        self.reason = reason
        super().__init__(f"Transaction for post {post_id} failed: {reason}")
