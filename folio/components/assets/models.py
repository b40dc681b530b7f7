"""
Assets component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

AssetOperation = Literal["promote", "delete"]


@dataclass(frozen=True)
class PromotionResult:
    """A temp object moved to its permanent key."""

    temp_key: str
    final_key: str
    canonical_url: str
    already_promoted: bool = False


@dataclass(frozen=True)
class AssetFailure:
    """A single storage call that failed; logged and otherwise ignored."""

    operation: AssetOperation
    key: str
    reason: str


@dataclass(frozen=True)
class StorageSettlement:
    """
    Outcome of the storage phase of an edit.

    promoted maps each successfully promoted temp key to its result;
    deleted lists keys removed from storage; failures lists the rest.
    """

    promoted: dict[str, PromotionResult] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    failures: list[AssetFailure] = field(default_factory=list)

    def failed_keys(self, operation: AssetOperation) -> set[str]:
        return {f.key for f in self.failures if f.operation == operation}
