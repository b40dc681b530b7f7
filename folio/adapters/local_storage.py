"""
Local filesystem storage adapter.

Implements ObjectStoragePort on a directory tree, for development and tests.
Each key maps to {root}/{key}.bin plus a {key}.meta.json sidecar. Objects
written without the adapter (a presigned PUT against the dev server, a file
copied in by hand) have no sidecar and are described from their bytes.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import asdict, replace
from pathlib import Path

from folio.core.ports.storage import (
    IntegrityError,
    KeyNotFoundError,
    StorageError,
    StoredObject,
)

logger = logging.getLogger(__name__)

DATA_SUFFIX = ".bin"
META_SUFFIX = ".meta.json"
UNKNOWN_TYPE = "application/octet-stream"


def _describe(key: str, data: bytes, content_type: str) -> StoredObject:
    digest = hashlib.sha256(data).hexdigest()
    return StoredObject(
        key=key,
        size_bytes=len(data),
        content_type=content_type,
        sha256=digest,
        etag=f'"{digest[:32]}"',
    )


class LocalFileStorage:
    """ObjectStoragePort over a local directory."""

    def __init__(self, base_path: str | Path, *, create_dirs: bool = True) -> None:
        self.base_path = Path(base_path).resolve()
        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _data_path(self, key: str) -> Path:
        path = (self.base_path / (key.lstrip("/") + DATA_SUFFIX)).resolve()
        if not path.is_relative_to(self.base_path):
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    @staticmethod
    def _meta_path(data_path: Path) -> Path:
        return data_path.with_name(data_path.name.removesuffix(DATA_SUFFIX) + META_SUFFIX)

    def _describe_existing(self, key: str, data_path: Path) -> StoredObject:
        meta_path = self._meta_path(data_path)
        if meta_path.exists():
            fields = json.loads(meta_path.read_text())
            return StoredObject(**{**fields, "key": key})
        return _describe(key, data_path.read_bytes(), UNKNOWN_TYPE)

    def _record(self, data_path: Path, meta: StoredObject) -> None:
        self._meta_path(data_path).write_text(json.dumps(asdict(meta)))

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        data_path = self._data_path(key)
        meta = _describe(key, data, content_type)
        try:
            data_path.parent.mkdir(parents=True, exist_ok=True)
            data_path.write_bytes(data)
            self._record(data_path, meta)
        except OSError as e:
            raise StorageError(f"Put {key} failed: {e}") from e
        return meta

    def get(self, key: str) -> tuple[bytes, StoredObject]:
        """Read an object and verify it against its recorded checksum."""
        data_path = self._data_path(key)
        if not data_path.exists():
            raise KeyNotFoundError(key)

        data = data_path.read_bytes()
        meta = self._describe_existing(key, data_path)
        actual = hashlib.sha256(data).hexdigest()
        if actual != meta.sha256:
            raise IntegrityError(meta.sha256, actual)
        return data, meta

    def exists(self, key: str) -> bool:
        return self._data_path(key).exists()

    def copy(self, source_key: str, dest_key: str) -> StoredObject:
        source_path = self._data_path(source_key)
        dest_path = self._data_path(dest_key)
        if not source_path.exists():
            raise KeyNotFoundError(source_key)

        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, dest_path)
            meta = replace(self._describe_existing(source_key, source_path), key=dest_key)
            self._record(dest_path, meta)
        except OSError as e:
            raise StorageError(f"Copy {source_key} -> {dest_key} failed: {e}") from e
        return meta

    def delete(self, key: str) -> bool:
        data_path = self._data_path(key)
        if not data_path.exists():
            return False

        try:
            data_path.unlink()
            self._meta_path(data_path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Delete {key} failed: {e}") from e
        logger.debug("Deleted local object %s", key)
        return True

