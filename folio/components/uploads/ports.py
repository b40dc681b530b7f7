"""
Uploads component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class UploadPresignerPort(Protocol):
    def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        """Time-bounded write URL for a key."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
