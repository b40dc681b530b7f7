"""
Assets component - asset lifecycle in object storage.

Promotes freshly uploaded (temporary) objects to permanent,
visibility-scoped keys and deletes orphaned ones. Storage only: nothing
here touches the database, and nothing here may run while a database
transaction is open.

Rules:
- only temp objects of the acting owner can be promoted
- promotion target is deterministic per temp key
- per-object failures never raise out of settle(); they are reported
- settle() returns only after every call finished, or raises on deadline
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from uuid import UUID

from folio.core.entities import Visibility
from folio.core.errors import StorageOperationFailed
from folio.core.ports.storage import KeyNotFoundError, StorageError

from ._refs import build_final_key, canonical_url, is_temporary_key, try_normalize
from .models import AssetFailure, AssetOperation, PromotionResult, StorageSettlement
from .ports import StoragePort

logger = logging.getLogger(__name__)


class AssetLifecycleManager:
    """
    Promote/delete objects, singly or as one bounded-parallel batch.

    Args:
        storage: Object store primitives.
        base_url: Public base URL used to build canonical URLs.
        temp_prefix: Top-level prefix of staged uploads.
        max_workers: Upper bound on concurrent storage calls in settle().
        settle_timeout_seconds: Deadline for a whole settle() batch.
    """

    def __init__(
        self,
        storage: StoragePort,
        *,
        base_url: str,
        temp_prefix: str = "temp",
        max_workers: int = 8,
        settle_timeout_seconds: float = 30.0,
    ) -> None:
        if try_normalize(canonical_url("object.bin", base_url)) != "object.bin":
            raise ValueError(f"base_url {base_url!r} must be an origin without a path")
        self.storage = storage
        self.base_url = base_url
        self.temp_prefix = temp_prefix
        self.max_workers = max_workers
        self.settle_timeout_seconds = settle_timeout_seconds

    def canonical_url(self, key: str) -> str:
        return canonical_url(key, self.base_url)

    def final_key_for(
        self, temp_key: str, *, owner_id: UUID, post_id: UUID, visibility: Visibility
    ) -> str | None:
        """Permanent key promote() would use for temp_key, or None if it would refuse it."""
        if not is_temporary_key(temp_key, owner_id, self.temp_prefix):
            return None
        return build_final_key(owner_id, post_id, temp_key, visibility)

    def promote(
        self,
        temp_key: str,
        *,
        owner_id: UUID,
        post_id: UUID,
        visibility: Visibility,
    ) -> PromotionResult:
        """
        Copy temp_key to its permanent key, then drop the temp copy.

        Not idempotent at the store level; callers must not promote the same
        key twice at once. A temp key whose permanent copy already exists
        (an earlier attempt got this far) resolves to that copy.

        Raises:
            StorageOperationFailed: On refusal or any storage error.
        """
        if not is_temporary_key(temp_key, owner_id, self.temp_prefix):
            raise StorageOperationFailed(
                "promote", temp_key, "not a temporary upload of the acting owner"
            )

        final_key = build_final_key(owner_id, post_id, temp_key, visibility)
        url = self.canonical_url(final_key)

        try:
            self.storage.copy(temp_key, final_key)
        except KeyNotFoundError as e:
            if self._exists(final_key):
                logger.info("Temp object %s already promoted to %s", temp_key, final_key)
                return PromotionResult(temp_key, final_key, url, already_promoted=True)
            raise StorageOperationFailed("promote", temp_key, "temporary object not found") from e
        except StorageError as e:
            raise StorageOperationFailed("promote", temp_key, str(e)) from e

        try:
            self.storage.delete(temp_key)
        except StorageError as e:
            # Permanent copy is in place; a leftover temp object is only garbage
            logger.warning("Promoted %s but could not remove temp copy: %s", temp_key, e)

        logger.debug("Promoted %s -> %s", temp_key, final_key)
        return PromotionResult(temp_key, final_key, url)

    def delete(self, key: str) -> None:
        """
        Remove an object. A missing object is not an error.

        Raises:
            StorageOperationFailed: On storage error.
        """
        try:
            existed = self.storage.delete(key)
        except StorageError as e:
            raise StorageOperationFailed("delete", key, str(e)) from e
        if not existed:
            logger.debug("Delete of %s: object already absent", key)

    def settle(
        self,
        promotions: Sequence[str],
        deletions: Sequence[str],
        *,
        owner_id: UUID,
        post_id: UUID,
        visibility: Visibility,
    ) -> StorageSettlement:
        """
        Run every promotion and deletion concurrently and wait for all of them.

        Per-object failures are logged and collected. Running past the
        deadline raises; calls still in flight are left to finish on their
        own rather than abandoned half way.

        Raises:
            StorageOperationFailed: If the batch misses settle_timeout_seconds.
        """
        total = len(promotions) + len(deletions)
        if total == 0:
            return StorageSettlement()

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, total),
            thread_name_prefix="folio-storage",
        )
        futures: dict[Future[PromotionResult | None], tuple[AssetOperation, str]] = {}
        try:
            for key in promotions:
                fut = executor.submit(
                    self.promote, key, owner_id=owner_id, post_id=post_id, visibility=visibility
                )
                futures[fut] = ("promote", key)
            for key in deletions:
                futures[executor.submit(self.delete, key)] = ("delete", key)

            _, pending = wait(futures, timeout=self.settle_timeout_seconds)
        finally:
            executor.shutdown(wait=False)

        if pending:
            raise StorageOperationFailed(
                "settle",
                None,
                f"{len(pending)} of {total} storage calls still running "
                f"after {self.settle_timeout_seconds}s",
            )

        promoted: dict[str, PromotionResult] = {}
        deleted: list[str] = []
        failures: list[AssetFailure] = []

        for fut, (operation, key) in futures.items():
            try:
                result = fut.result()
            except StorageOperationFailed as e:
                logger.warning("Storage %s failed for %s: %s", operation, key, e.reason)
                failures.append(AssetFailure(operation, key, e.reason))
                continue
            if operation == "promote" and result is not None:
                promoted[key] = result
            else:
                deleted.append(key)

        return StorageSettlement(promoted=promoted, deleted=deleted, failures=failures)

    def _exists(self, key: str) -> bool:
        try:
            return self.storage.exists(key)
        except StorageError:
            return False
