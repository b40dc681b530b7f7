"""
Assets component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from folio.core.ports.storage import StoredObject


class StoragePort(Protocol):
    """Object store primitives needed to promote and delete assets."""

    def exists(self, key: str) -> bool:
        """Check if key exists."""
        ...

    def copy(self, source_key: str, dest_key: str) -> StoredObject:
        """Server-side copy. Raises KeyNotFoundError if source is missing."""
        ...

    def delete(self, key: str) -> bool:
        """Delete object. Returns False if it didn't exist."""
        ...
