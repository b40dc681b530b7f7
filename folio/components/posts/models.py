"""
Posts component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from folio.components.assets import PromotionResult
from folio.core.entities import Category, Image, Post, Visibility

# --- Edit state machine ---


class EditState(str, Enum):
    RECEIVED = "received"
    DIFFED = "diffed"
    STORAGE_SETTLED = "storage_settled"
    COMMITTED = "committed"
    FAILED = "failed"


EDIT_TRANSITIONS: dict[EditState, frozenset[EditState]] = {
    EditState.RECEIVED: frozenset({EditState.DIFFED, EditState.FAILED}),
    EditState.DIFFED: frozenset({EditState.STORAGE_SETTLED, EditState.FAILED}),
    EditState.STORAGE_SETTLED: frozenset({EditState.COMMITTED, EditState.FAILED}),
    EditState.COMMITTED: frozenset(),
    EditState.FAILED: frozenset(),
}


# --- Errors ---


@dataclass(frozen=True)
class EditError:
    """Fatal edit error, surfaced to the caller."""

    code: str
    message: str


@dataclass(frozen=True)
class SkippedAsset:
    """An image left out of the persisted result. Not reported to API callers."""

    reference: str
    code: str
    reason: str


# --- Input Models ---


@dataclass(frozen=True)
class IncomingImage:
    url: str
    description: str | None = None


@dataclass(frozen=True)
class EditPostInput:
    """Client-submitted edit of a post. owner_user_id is the authenticated caller."""

    post_id: UUID
    owner_user_id: UUID
    title: str
    description: str
    category: Category
    tags: list[str]
    visibility: Visibility
    is_draft: bool
    images: list[IncomingImage] = field(default_factory=list)
    cover_image_url: str | None = None


@dataclass(frozen=True)
class GetPostInput:
    post_id: UUID
    owner_user_id: UUID


# --- Diff ---


@dataclass(frozen=True)
class KeptImage:
    key: str
    incoming: IncomingImage
    existing: Image
    # Temp key the client sent when it resubmits an upload that is already attached
    source_key: str | None = None


@dataclass(frozen=True)
class NewImage:
    key: str
    incoming: IncomingImage


@dataclass(frozen=True)
class ImageDiff:
    """
    Partition of incoming and persisted images by normalized key.

    kept + new covers every valid incoming key exactly once;
    kept + deleted covers every persisted image exactly once.
    """

    kept: list[KeptImage] = field(default_factory=list)
    new: list[NewImage] = field(default_factory=list)
    deleted: list[Image] = field(default_factory=list)
    skipped: list[SkippedAsset] = field(default_factory=list)

    def kept_keys(self) -> set[str]:
        return {k.key for k in self.kept}

    def new_keys(self) -> set[str]:
        return {n.key for n in self.new}


# --- Cover resolution ---


@dataclass(frozen=True)
class CoverContext:
    """
    Everything cover resolution may look at.

    promoted holds only promotions that will actually be persisted,
    keyed by the normalized temp key.
    """

    requested_key: str | None
    kept: list[KeptImage]
    promoted: dict[str, PromotionResult]
    previous: str | None


@dataclass(frozen=True)
class CoverResolution:
    url: str | None
    source: str


# --- Commit ---


@dataclass(frozen=True)
class CommitPlan:
    """Relational delta of one edit; storage is already settled when this exists."""

    post: Post
    delete_ids: list[UUID]
    inserts: list[Image]
    description_updates: list[tuple[UUID, str | None]]
    kept: list[Image]


# --- Output Models ---


@dataclass(frozen=True)
class EditPostOutput:
    post: Post | None
    state: EditState
    errors: list[EditError] = field(default_factory=list)
    skipped: list[SkippedAsset] = field(default_factory=list)
    cover_source: str | None = None
    success: bool = True


@dataclass(frozen=True)
class PostOutput:
    post: Post | None
    errors: list[EditError] = field(default_factory=list)
    success: bool = True
