"""
Uploads component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

# --- Validation Error ---


@dataclass(frozen=True)
class UploadValidationError:
    """Upload request rejected before any URL was issued."""

    code: str
    message: str
    field: str = "file_name"


# --- Input Models ---


@dataclass(frozen=True)
class IssueUploadInput:
    """Request for a presigned upload slot. owner_user_id is the authenticated caller."""

    owner_user_id: UUID
    file_name: str
    content_type: str


# --- Output Models ---


@dataclass(frozen=True)
class UploadTicket:
    """
    Where and how the client may upload.

    upload_url is signed and short lived; key is the temporary storage key
    the client later sends back in an edit; canonical_url is its stable
    unsigned address.
    """

    upload_url: str
    key: str
    canonical_url: str
    expires_in: int


@dataclass(frozen=True)
class IssueUploadOutput:
    ticket: UploadTicket | None
    errors: list[UploadValidationError] = field(default_factory=list)
    success: bool = True
