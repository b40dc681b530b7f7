"""
Asset reference resolution.

Pure, stateless translation between asset URLs and storage keys. Signed
URLs carry transient query params (X-Amz-Signature, sig, expires, ...);
two references to the same object must compare equal once normalized, so
every set operation on images is done over normalize() output.
"""

from __future__ import annotations

import re
from datetime import datetime
from urllib.parse import urlsplit
from uuid import UUID

from folio.core.entities import Visibility
from folio.core.errors import InvalidAssetReference

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_ALLOWED_SCHEMES = ("http", "https")


def normalize(reference: str) -> str:
    """
    Reduce a URL (signed or not) or a bare key to its canonical storage key.

    >>> normalize("https://bucket.s3.amazonaws.com/public/u/p/a.jpg?X-Amz-Signature=abc")
    'public/u/p/a.jpg'
    >>> normalize("public/u/p/a.jpg")
    'public/u/p/a.jpg'

    Raises:
        InvalidAssetReference: If the reference cannot name an object.
    """
    if reference is None or not reference.strip():
        raise InvalidAssetReference(str(reference), "empty reference")

    ref = reference.strip()

    if "://" in ref:
        parts = urlsplit(ref)
        if parts.scheme.lower() not in _ALLOWED_SCHEMES:
            raise InvalidAssetReference(ref, f"unsupported scheme '{parts.scheme}'")
        if not parts.netloc:
            raise InvalidAssetReference(ref, "missing host")
        path = parts.path
    else:
        # Already a key, possibly with a stray query string or fragment
        path = ref.split("?", 1)[0].split("#", 1)[0]

    key = path.lstrip("/")
    if not key:
        raise InvalidAssetReference(ref, "no object path")
    if any(c.isspace() for c in key):
        raise InvalidAssetReference(ref, "whitespace in object path")
    if ".." in key.split("/"):
        raise InvalidAssetReference(ref, "relative path segment")

    return key


def try_normalize(reference: str | None) -> str | None:
    """normalize() that returns None instead of raising."""
    if reference is None:
        return None
    try:
        return normalize(reference)
    except InvalidAssetReference:
        return None


def canonical_url(key: str, base_url: str) -> str:
    """Stable, unsigned address of an object."""
    return f"{base_url.rstrip('/')}/{key.lstrip('/')}"


def sanitize_filename(name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def build_temp_key(owner_id: UUID, filename: str, now: datetime, temp_prefix: str = "temp") -> str:
    """
    Staging key for a fresh upload.

    Format: {temp_prefix}/{owner_id}/{epoch_ms}-{sanitized filename}
    """
    epoch_ms = int(now.timestamp() * 1000)
    return f"{temp_prefix}/{owner_id}/{epoch_ms}-{sanitize_filename(filename)}"


def is_temporary_key(key: str, owner_id: UUID, temp_prefix: str = "temp") -> bool:
    """True if key is a staged upload belonging to owner_id."""
    prefix = f"{temp_prefix}/{owner_id}/"
    return key.startswith(prefix) and len(key) > len(prefix)


def build_final_key(
    owner_id: UUID,
    post_id: UUID,
    temp_key: str,
    visibility: Visibility,
) -> str:
    """
    Permanent, visibility-scoped key for a promoted upload.

    Format: {visibility}/{owner_id}/{post_id}/{sanitized basename of temp key}

    Deterministic per temp key, so a resubmitted edit targets the same object.
    """
    basename = temp_key.rsplit("/", 1)[-1]
    return f"{visibility.lower()}/{owner_id}/{post_id}/{sanitize_filename(basename)}"
