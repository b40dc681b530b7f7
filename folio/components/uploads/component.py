"""
Uploads component - presigned upload slots for new images.

Clients upload straight to object storage under a temporary key and later
reference that key in an edit, where it is promoted. Nothing is written
here; the component only validates the request and signs a URL.
"""

from __future__ import annotations

import logging
import os

from folio.components.assets import build_temp_key, canonical_url
from folio.core.errors import StorageOperationFailed
from folio.core.ports.storage import StorageError
from folio.rules.models import Rules

from .models import IssueUploadInput, IssueUploadOutput, UploadTicket, UploadValidationError
from .ports import TimePort, UploadPresignerPort

logger = logging.getLogger(__name__)


def validate_content_type(content_type: str, allowed: list[str]) -> list[UploadValidationError]:
    if content_type.lower() in (t.lower() for t in allowed):
        return []
    return [
        UploadValidationError(
            code="invalid_mime_type",
            message=(
                f"MIME type '{content_type}' is not allowed. "
                f"Allowed types: {', '.join(sorted(allowed))}"
            ),
            field="content_type",
        )
    ]


def validate_file_name(
    file_name: str, allowed_extensions: list[str], max_length: int
) -> list[UploadValidationError]:
    """Returns list of errors (empty if valid)."""
    errors: list[UploadValidationError] = []

    if not file_name.strip():
        errors.append(UploadValidationError("file_name_required", "File name is required"))
        return errors

    if len(file_name) > max_length:
        errors.append(
            UploadValidationError(
                "file_name_too_long",
                f"File name exceeds {max_length} characters",
            )
        )

    _, ext = os.path.splitext(file_name)
    if ext.lower() not in (e.lower() for e in allowed_extensions):
        errors.append(
            UploadValidationError(
                "invalid_extension",
                f"Extension '{ext}' is not allowed. "
                f"Allowed extensions: {', '.join(sorted(allowed_extensions))}",
            )
        )

    return errors


# --- Component Entry Points ---


def run_issue_upload(
    inp: IssueUploadInput,
    *,
    presigner: UploadPresignerPort,
    rules: Rules,
    time: TimePort,
) -> IssueUploadOutput:
    """
    Issue a presigned upload URL for a new temporary object.

    Args:
        inp: File name and content type from the client.
        presigner: Signs the upload URL.
        rules: Upload allowlists and storage settings.
        time: Time port; the temp key embeds the issue time.

    Returns:
        IssueUploadOutput with the ticket, or validation errors.

    Raises:
        StorageOperationFailed: If the storage backend cannot sign the URL.
    """
    errors = [
        *validate_file_name(
            inp.file_name,
            rules.uploads.allowlist_extensions,
            rules.uploads.max_filename_length,
        ),
        *validate_content_type(inp.content_type, rules.uploads.allowlist_mime_types),
    ]
    if errors:
        logger.info(
            "Upload request from %s rejected: %s",
            inp.owner_user_id,
            ", ".join(e.code for e in errors),
        )
        return IssueUploadOutput(ticket=None, errors=errors, success=False)

    storage = rules.storage
    key = build_temp_key(
        inp.owner_user_id, inp.file_name, time.now_utc(), temp_prefix=storage.temp_prefix
    )
    expires_in = storage.signed_url_ttl_seconds
    try:
        upload_url = presigner.issue_upload_url(key, inp.content_type, expires_in)
    except StorageError as e:
        logger.error("Signing upload slot %s failed: %s", key, e)
        raise StorageOperationFailed("presign", key, str(e)) from e

    logger.debug("Issued upload slot %s for %s", key, inp.owner_user_id)
    return IssueUploadOutput(
        ticket=UploadTicket(
            upload_url=upload_url,
            key=key,
            canonical_url=canonical_url(key, storage.public_base_url),
            expires_in=expires_in,
        )
    )
