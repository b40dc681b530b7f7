"""
Local presigned URL issuer.

Mimics S3 query-string signing for development: the canonical URL gets
`op`, `expires` and an HMAC-SHA256 `sig` appended. Signed URLs differ on
every issue, which is exactly what reference normalization must ignore.
"""

from __future__ import annotations

import hashlib
import hmac
from urllib.parse import urlencode

from folio.core.ports.time import TimePort


class LocalPresigner:
    def __init__(self, base_url: str, secret: str, time: TimePort) -> None:
        self.base_url = base_url.rstrip("/")
        self._secret = secret.encode()
        self._time = time

    def _sign(self, key: str, op: str, expires: int) -> str:
        message = f"{op}\n{key}\n{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _signed(self, key: str, op: str, expires_in: int) -> str:
        expires = int(self._time.now_utc().timestamp()) + expires_in
        query = urlencode({"op": op, "expires": expires, "sig": self._sign(key, op, expires)})
        return f"{self.base_url}/{key}?{query}"

    def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        return self._signed(key, "put", expires_in)

    def issue_view_url(self, key: str, expires_in: int) -> str:
        return self._signed(key, "get", expires_in)

    def verify(self, key: str, op: str, expires: int, sig: str) -> bool:
        """Check a signature issued by this presigner and that it has not expired."""
        if expires < int(self._time.now_utc().timestamp()):
            return False
        return hmac.compare_digest(self._sign(key, op, expires), sig)
