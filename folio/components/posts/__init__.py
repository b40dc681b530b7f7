"""
Posts component - edit reconciliation and transactional persistence.
"""

from ._cover import (
    COVER_STRATEGIES,
    CoverStrategy,
    from_kept,
    from_previous,
    from_promoted_canonical,
    from_promotion_mapping,
    resolve_cover,
)
from ._persist import commit_edit
from .component import (
    adopt_attached_uploads,
    build_commit_plan,
    diff_images,
    resolve_visibility,
    run_edit,
    run_get_owned,
    select_promotions,
)
from .models import (
    EDIT_TRANSITIONS,
    CommitPlan,
    CoverContext,
    CoverResolution,
    EditError,
    EditPostInput,
    EditPostOutput,
    EditState,
    GetPostInput,
    ImageDiff,
    IncomingImage,
    KeptImage,
    NewImage,
    PostOutput,
    SkippedAsset,
)
from .ports import (
    AssetLifecyclePort,
    PostRepoPort,
    PresignerPort,
    TimePort,
    UnitOfWorkFactory,
)

__all__ = [
    # Entry points
    "run_edit",
    "run_get_owned",
    # Reconciliation
    "diff_images",
    "adopt_attached_uploads",
    "resolve_visibility",
    "select_promotions",
    "build_commit_plan",
    "commit_edit",
    # Cover resolution
    "COVER_STRATEGIES",
    "CoverStrategy",
    "from_kept",
    "from_promotion_mapping",
    "from_promoted_canonical",
    "from_previous",
    "resolve_cover",
    # Models
    "EDIT_TRANSITIONS",
    "CommitPlan",
    "CoverContext",
    "CoverResolution",
    "EditError",
    "EditPostInput",
    "EditPostOutput",
    "EditState",
    "GetPostInput",
    "ImageDiff",
    "IncomingImage",
    "KeptImage",
    "NewImage",
    "PostOutput",
    "SkippedAsset",
    # Ports
    "AssetLifecyclePort",
    "PostRepoPort",
    "PresignerPort",
    "TimePort",
    "UnitOfWorkFactory",
]
