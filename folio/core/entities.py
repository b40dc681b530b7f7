"""
Domain entities for folio.

A Post owns an ordered set of Images whose bytes live in object storage.
Image.url is always the canonical (unsigned) address; Image.storage_key is
its normalized key and is unique per post.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
Visibility = Literal["PUBLIC", "PRIVATE", "FOLLOWERS"]
Category = Literal[
    "FILMREFLECTION",
    "ARTICLE",
    "BOOKS",
    "MUSIC",
    "YOUTUBE",
    "DOCUMENTARY",
    "PODCAST",
    "OTHER",
]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Posts ---


class Image(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    post_id: UUID
    url: str
    storage_key: str
    description: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Post(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str = ""
    category: Category = "OTHER"
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = "PRIVATE"
    is_draft: bool = True
    cover_image: str | None = None
    owner_user_id: UUID

    images: list[Image] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


def unique_tags(tags: list[str]) -> list[str]:
    """Collapse duplicate tags, keeping first-seen order."""
    return list(dict.fromkeys(tags))
