"""
Assets component - reference normalization and storage lifecycle.
"""

from ._refs import (
    build_final_key,
    build_temp_key,
    canonical_url,
    is_temporary_key,
    normalize,
    sanitize_filename,
    try_normalize,
)
from .component import AssetLifecycleManager
from .models import (
    AssetFailure,
    AssetOperation,
    PromotionResult,
    StorageSettlement,
)
from .ports import StoragePort

__all__ = [
    # Reference resolution
    "normalize",
    "try_normalize",
    "canonical_url",
    "sanitize_filename",
    "build_temp_key",
    "build_final_key",
    "is_temporary_key",
    # Lifecycle
    "AssetLifecycleManager",
    # Models
    "AssetFailure",
    "AssetOperation",
    "PromotionResult",
    "StorageSettlement",
    # Ports
    "StoragePort",
]
