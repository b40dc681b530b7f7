"""
Posts component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from folio.components.assets import StorageSettlement
from folio.core.entities import Post, Visibility
from folio.core.ports.db import UnitOfWorkPort


class PostRepoPort(Protocol):
    """Read side used before any mutation."""

    def get_by_id(self, post_id: UUID) -> Post | None:
        """Get post by ID, images included."""
        ...


class AssetLifecyclePort(Protocol):
    """Storage phase of an edit."""

    def settle(
        self,
        promotions: Sequence[str],
        deletions: Sequence[str],
        *,
        owner_id: UUID,
        post_id: UUID,
        visibility: Visibility,
    ) -> StorageSettlement:
        """Promote and delete; returns once every call has finished."""
        ...

    def final_key_for(
        self, temp_key: str, *, owner_id: UUID, post_id: UUID, visibility: Visibility
    ) -> str | None:
        """Permanent key a temp upload promotes to; None for keys it would not promote."""
        ...


class PresignerPort(Protocol):
    def issue_view_url(self, key: str, expires_in: int) -> str:
        """Time-bounded read URL for a key."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


UnitOfWorkFactory = Callable[[], UnitOfWorkPort]
