"""
Database ports for posts and their images.

Implementations: SQLite (folio.adapters.sqlite_db).
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from folio.core.entities import Image, Post


class PostRepoPort(Protocol):
    """Repository for posts. Returned posts carry their images."""

    def get_by_id(self, post_id: UUID) -> Post | None:
        """Get post by ID, images included."""
        ...

    def save(self, post: Post) -> Post:
        """Insert or replace the post row (images untouched)."""
        ...

    def update(self, post: Post) -> Post:
        """
        Update mutable post columns.

        Raises:
            LookupError: If the row doesn't exist
        """
        ...


class ImageRepoPort(Protocol):
    """Repository for image rows of a post."""

    def list_by_post(self, post_id: UUID) -> list[Image]:
        """Images of a post in insertion order."""
        ...

    def delete_many(self, post_id: UUID, image_ids: Sequence[UUID]) -> int:
        """Delete the given images of a post. Returns rows deleted."""
        ...

    def insert_many(self, images: Sequence[Image]) -> None:
        """Insert new image rows."""
        ...

    def update_description(
        self, image_id: UUID, description: str | None, updated_at: datetime | None = None
    ) -> None:
        """Update a single image's description."""
        ...


class UnitOfWorkPort(Protocol):
    """
    Transaction boundary spanning the post and image repositories.

    Usage:
        with uow_factory() as uow:
            uow.images.delete_many(...)
            uow.posts.update(...)
            uow.commit()

    Leaving the block without commit() (or with an exception) rolls back.
    """

    posts: PostRepoPort
    images: ImageRepoPort

    def __enter__(self) -> UnitOfWorkPort: ...

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
