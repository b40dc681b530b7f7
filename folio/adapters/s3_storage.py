"""
S3 storage adapter (boto3).

Implements ObjectStoragePort and PresignerPort against a single bucket.
Every call is bounded by the client's connect/read timeouts so that no
storage operation can block an edit indefinitely.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from folio.core.ports.storage import KeyNotFoundError, StorageError, StoredObject

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(region: str, *, call_timeout_seconds: float = 10) -> Any:
    """Build a boto3 S3 client with bounded connect/read timeouts."""
    config = Config(
        region_name=region,
        connect_timeout=call_timeout_seconds,
        read_timeout=call_timeout_seconds,
        retries={"max_attempts": 3, "mode": "standard"},
        signature_version="s3v4",
    )
    return boto3.client("s3", config=config)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectStorage:
    """ObjectStoragePort backed by one S3 bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        sha256_hex = hashlib.sha256(data).hexdigest()
        try:
            response = self.client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"put_object {key} failed: {e}") from e

        return StoredObject(
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            sha256=sha256_hex,
            etag=response.get("ETag", ""),
        )

    def get(self, key: str) -> tuple[bytes, StoredObject]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise KeyNotFoundError(key) from e
            raise StorageError(f"get_object {key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"get_object {key} failed: {e}") from e

        return data, StoredObject(
            key=key,
            size_bytes=len(data),
            content_type=response.get("ContentType", "application/octet-stream"),
            sha256=hashlib.sha256(data).hexdigest(),
            etag=response.get("ETag", ""),
        )

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            raise StorageError(f"head_object {key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"head_object {key} failed: {e}") from e
        return True

    def copy(self, source_key: str, dest_key: str) -> StoredObject:
        try:
            response = self.client.copy_object(
                Bucket=self.bucket,
                CopySource={"Bucket": self.bucket, "Key": source_key},
                Key=dest_key,
            )
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise KeyNotFoundError(source_key) from e
            raise StorageError(f"copy_object {source_key} -> {dest_key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"copy_object {source_key} -> {dest_key} failed: {e}") from e

        etag = response.get("CopyObjectResult", {}).get("ETag", "")
        # copy_object does not report size/type; sha256 is left empty rather than re-reading
        return StoredObject(
            key=dest_key, size_bytes=0, content_type="", sha256="", etag=etag
        )

    def delete(self, key: str) -> bool:
        # S3 delete is idempotent and does not say whether the key existed
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"delete_object {key} failed: {e}") from e
        return True


class S3Presigner:
    """PresignerPort using boto3 generate_presigned_url."""

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def issue_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            url: str = self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"presign put {key} failed: {e}") from e
        return url

    def issue_view_url(self, key: str, expires_in: int) -> str:
        try:
            url: str = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"presign get {key} failed: {e}") from e
        return url
