"""
Posts component - reconciliation of a client edit against the stored post.

Given the persisted post (with images E and cover) and an edit carrying
images I and a requested cover C:

- kept    = { i in I : key(i) in key(E) }
- new     = { i in I : key(i) not in key(E) }
- deleted = { e in E : key(e) not in key(I) }

where key() is reference normalization, never raw URL equality.

Edit state machine:
- received -> diffed -> storage_settled -> committed
- any state -> failed (terminal, reported without retry)

Phases:
1. Storage phase: promote new, delete deleted; concurrent, all finished
   before the transaction opens.
2. Transaction phase: one atomic relational commit.

A failed commit after storage was settled leaves storage ahead of the
database. That window is logged with the affected keys and left for the
periodic audit to reconcile; a resubmitted edit converges because
promotion targets are deterministic per temp key.

Rules:
- is_draft forces PRIVATE visibility
- no two persisted images of a post share a normalized key
- a cover that cannot be resolved keeps the previous value
- only the owner can edit; nothing is mutated otherwise
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from uuid import UUID

from folio.components.assets import PromotionResult, StorageSettlement, normalize, try_normalize
from folio.core.entities import Image, Post, Visibility, unique_tags
from folio.core.errors import (
    FolioError,
    InvalidAssetReference,
    PostNotFound,
    StorageOperationFailed,
    TransactionFailed,
    Unauthorized,
)
from folio.core.ports.storage import StorageError

from ._cover import resolve_cover
from ._persist import commit_edit
from .models import (
    EDIT_TRANSITIONS,
    CommitPlan,
    CoverContext,
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
from .ports import AssetLifecyclePort, PostRepoPort, PresignerPort, TimePort, UnitOfWorkFactory

logger = logging.getLogger(__name__)

DEFAULT_VIEW_URL_TTL_SECONDS = 3600


# --- Pure helpers ---


def resolve_visibility(is_draft: bool, requested: Visibility) -> Visibility:
    """Drafts are always PRIVATE."""
    return "PRIVATE" if is_draft else requested


def _existing_key(image: Image) -> str:
    return try_normalize(image.url) or image.storage_key


def diff_images(existing: Sequence[Image], incoming: Sequence[IncomingImage]) -> ImageDiff:
    """
    Split incoming and persisted images into kept/new/deleted by normalized key.

    Incoming references that cannot be normalized are skipped. Repeated
    incoming keys collapse to their first occurrence.
    """
    existing_by_key: dict[str, Image] = {}
    for image in existing:
        existing_by_key.setdefault(_existing_key(image), image)

    kept: list[KeptImage] = []
    new: list[NewImage] = []
    skipped: list[SkippedAsset] = []
    seen: set[str] = set()

    for item in incoming:
        try:
            key = normalize(item.url)
        except InvalidAssetReference as e:
            logger.warning("Skipping image with invalid reference %r: %s", item.url, e.reason)
            skipped.append(SkippedAsset(str(item.url), e.code, e.reason))
            continue

        if key in seen:
            logger.warning("Skipping duplicate image reference %s", key)
            skipped.append(SkippedAsset(item.url, "duplicate_image", f"duplicate key {key}"))
            continue
        seen.add(key)

        if key in existing_by_key:
            kept.append(KeptImage(key=key, incoming=item, existing=existing_by_key[key]))
        else:
            new.append(NewImage(key=key, incoming=item))

    deleted = [image for key, image in existing_by_key.items() if key not in seen]
    # Rows that share a key with an earlier row are duplicates the schema forbids; drop them too
    listed = {id(image) for image in existing_by_key.values()}
    deleted.extend(image for image in existing if id(image) not in listed)

    return ImageDiff(kept=kept, new=new, deleted=deleted, skipped=skipped)


def adopt_attached_uploads(
    diff: ImageDiff, final_key_for: Callable[[str], str | None]
) -> ImageDiff:
    """
    Treat new temp references whose permanent copy is already attached as kept.

    A resubmitted edit (the client retrying after a lost response) names the
    temp upload again while the post already holds its promoted copy. Left as
    new + deleted, the storage phase would promote onto that copy and delete it
    in the same batch.
    """
    deleted_by_key: dict[str, Image] = {}
    for image in diff.deleted:
        deleted_by_key.setdefault(_existing_key(image), image)

    taken = diff.kept_keys()
    kept = list(diff.kept)
    new: list[NewImage] = []
    adopted: set[int] = set()

    for item in diff.new:
        final_key = final_key_for(item.key)
        image = deleted_by_key.get(final_key) if final_key else None
        if image is None or final_key in taken:
            new.append(item)
            continue
        logger.info("Upload %s is already attached as %s; keeping it", item.key, final_key)
        taken.add(final_key)
        adopted.add(id(image))
        kept.append(
            KeptImage(key=final_key, incoming=item.incoming, existing=image, source_key=item.key)
        )

    if not adopted:
        return diff
    deleted = [image for image in diff.deleted if id(image) not in adopted]
    return ImageDiff(kept=kept, new=new, deleted=deleted, skipped=diff.skipped)


def select_promotions(
    diff: ImageDiff, settlement: StorageSettlement, reserved: Sequence[str] = ()
) -> tuple[list[tuple[NewImage, PromotionResult]], list[SkippedAsset]]:
    """
    Pair new images with their successful promotions.

    Failed promotions are dropped, never treated as kept. A promotion whose
    permanent key collides with a kept image or an earlier promotion is
    dropped as well, as is one that collides with a reserved key.
    """
    taken = diff.kept_keys() | set(reserved)
    selected: list[tuple[NewImage, PromotionResult]] = []
    skipped: list[SkippedAsset] = []
    failures = {f.key: f for f in settlement.failures if f.operation == "promote"}

    for item in diff.new:
        result = settlement.promoted.get(item.key)
        if result is None:
            failure = failures.get(item.key)
            reason = failure.reason if failure else "not promoted"
            skipped.append(SkippedAsset(item.incoming.url, StorageOperationFailed.code, reason))
            continue
        if result.final_key in taken:
            logger.warning("Promoted key %s already attached to post; skipping", result.final_key)
            skipped.append(
                SkippedAsset(item.incoming.url, "duplicate_image", f"duplicate key {result.final_key}")
            )
            continue
        taken.add(result.final_key)
        selected.append((item, result))

    return selected, skipped


def build_commit_plan(
    existing: Post,
    inp: EditPostInput,
    diff: ImageDiff,
    promotions: Sequence[tuple[NewImage, PromotionResult]],
    cover_url: str | None,
    visibility: Visibility,
    now: datetime,
    retained: Sequence[Image] = (),
) -> CommitPlan:
    """
    Translate a settled edit into the relational delta.

    retained lists removed images whose storage delete failed; their rows
    stay so the post never points past an object that still exists.
    """
    retained_ids = {image.id for image in retained}
    post = existing.model_copy(
        update={
            "title": inp.title,
            "description": inp.description,
            "category": inp.category,
            "tags": unique_tags(inp.tags),
            "visibility": visibility,
            "is_draft": inp.is_draft,
            "cover_image": cover_url,
            "updated_at": now,
            "images": [],
        }
    )

    inserts = [
        Image(
            post_id=existing.id,
            url=result.canonical_url,
            storage_key=result.final_key,
            description=item.incoming.description,
            created_at=now,
            updated_at=now,
        )
        for item, result in promotions
    ]

    description_updates: list[tuple[UUID, str | None]] = []
    kept: list[Image] = []
    for item in diff.kept:
        if item.existing.description != item.incoming.description:
            description_updates.append((item.existing.id, item.incoming.description))
            kept.append(
                item.existing.model_copy(
                    update={"description": item.incoming.description, "updated_at": now}
                )
            )
        else:
            kept.append(item.existing)

    return CommitPlan(
        post=post,
        delete_ids=[image.id for image in diff.deleted if image.id not in retained_ids],
        inserts=inserts,
        description_updates=description_updates,
        kept=[*kept, *retained],
    )


# --- State machine ---


class _EditRun:
    """Tracks one edit through its states and logs each transition."""

    def __init__(self, post_id: UUID) -> None:
        self.post_id = post_id
        self.state = EditState.RECEIVED

    def advance(self, target: EditState) -> None:
        if target not in EDIT_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal edit transition {self.state.value} -> {target.value}")
        logger.debug("Edit of post %s: %s -> %s", self.post_id, self.state.value, target.value)
        self.state = target

    def fail(self, error: FolioError, skipped: Sequence[SkippedAsset] = ()) -> EditPostOutput:
        self.advance(EditState.FAILED)
        return EditPostOutput(
            post=None,
            state=self.state,
            errors=[EditError(code=error.code, message=error.message)],
            skipped=list(skipped),
            success=False,
        )


def _load_owned(repo: PostRepoPort, post_id: UUID, owner_user_id: UUID) -> Post:
    post = repo.get_by_id(post_id)
    if post is None:
        raise PostNotFound(post_id)
    if post.owner_user_id != owner_user_id:
        raise Unauthorized(post_id, owner_user_id)
    return post


# --- Component Entry Points ---


def run_edit(
    inp: EditPostInput,
    *,
    repo: PostRepoPort,
    lifecycle: AssetLifecyclePort,
    uow_factory: UnitOfWorkFactory,
    time: TimePort,
) -> EditPostOutput:
    """
    Reconcile and commit an edit of a post.

    Args:
        inp: The edit, including the authenticated owner id.
        repo: Read access to the current post and images.
        lifecycle: Storage phase (promote/delete).
        uow_factory: Opens the transaction for the relational commit.
        time: Time port for updated_at.

    Returns:
        EditPostOutput with the updated post, or errors and state FAILED.
    """
    run = _EditRun(inp.post_id)

    try:
        existing = _load_owned(repo, inp.post_id, inp.owner_user_id)
    except (PostNotFound, Unauthorized) as e:
        logger.info("Edit of post %s rejected: %s", inp.post_id, e.message)
        return run.fail(e)

    visibility = resolve_visibility(inp.is_draft, inp.visibility)
    diff = adopt_attached_uploads(
        diff_images(existing.images, inp.images),
        lambda key: lifecycle.final_key_for(
            key, owner_id=inp.owner_user_id, post_id=existing.id, visibility=visibility
        ),
    )
    run.advance(EditState.DIFFED)

    # Duplicate rows of a kept key are dropped from the database only
    kept_keys = diff.kept_keys()
    deletions = dict.fromkeys(
        key for key in map(_existing_key, diff.deleted) if key not in kept_keys
    )

    try:
        settlement = lifecycle.settle(
            [item.key for item in diff.new],
            list(deletions),
            owner_id=inp.owner_user_id,
            post_id=existing.id,
            visibility=visibility,
        )
    except StorageOperationFailed as e:
        logger.error("Storage phase of post %s edit failed: %s", existing.id, e.message)
        return run.fail(e, diff.skipped)
    run.advance(EditState.STORAGE_SETTLED)

    failed_deletes = settlement.failed_keys("delete")
    retained = [image for image in diff.deleted if _existing_key(image) in failed_deletes]
    promotions, promotion_skips = select_promotions(
        diff, settlement, reserved=[_existing_key(image) for image in retained]
    )
    skipped = [
        *diff.skipped,
        *promotion_skips,
        *(
            SkippedAsset(image.url, StorageOperationFailed.code, "storage delete failed; row kept")
            for image in retained
        ),
    ]

    cover = resolve_cover(
        CoverContext(
            requested_key=try_normalize(inp.cover_image_url),
            kept=diff.kept,
            promoted={item.key: result for item, result in promotions},
            previous=existing.cover_image,
        )
    )
    if inp.cover_image_url is not None and cover.source in ("previous", "none"):
        logger.warning(
            "Cover %r of post %s did not match any image; keeping previous cover",
            inp.cover_image_url,
            existing.id,
        )

    plan = build_commit_plan(
        existing, inp, diff, promotions, cover.url, visibility, time.now_utc(), retained
    )

    try:
        post = commit_edit(plan, uow_factory=uow_factory)
    except TransactionFailed as e:
        logger.error(
            "Commit of post %s failed after storage settled; storage is ahead of the "
            "database (promoted=%s, deleted=%s): %s",
            existing.id,
            sorted(r.final_key for r in settlement.promoted.values()),
            sorted(settlement.deleted),
            e.reason,
        )
        return run.fail(e, skipped)
    run.advance(EditState.COMMITTED)

    logger.info(
        "Post %s edited: %d kept, %d added, %d removed, %d skipped, cover from %s",
        post.id,
        len(diff.kept),
        len(promotions),
        len(plan.delete_ids),
        len(skipped),
        cover.source,
    )
    return EditPostOutput(
        post=post,
        state=run.state,
        skipped=skipped,
        cover_source=cover.source,
    )


def run_get_owned(
    inp: GetPostInput,
    *,
    repo: PostRepoPort,
    presigner: PresignerPort,
    expires_in: int = DEFAULT_VIEW_URL_TTL_SECONDS,
) -> PostOutput:
    """
    Owner's view of a post, with every image and the cover as signed view URLs.
    """
    try:
        post = _load_owned(repo, inp.post_id, inp.owner_user_id)
    except (PostNotFound, Unauthorized) as e:
        return PostOutput(post=None, errors=[EditError(e.code, e.message)], success=False)

    def _sign(url: str) -> str:
        key = try_normalize(url)
        if key is None:
            logger.warning("Post %s holds unresolvable asset reference %r", post.id, url)
            return url
        try:
            return presigner.issue_view_url(key, expires_in)
        except StorageError as e:
            raise StorageOperationFailed("presign", key, str(e)) from e

    try:
        images = [image.model_copy(update={"url": _sign(image.url)}) for image in post.images]
        cover = _sign(post.cover_image) if post.cover_image else None
    except StorageOperationFailed as e:
        logger.error("Could not sign asset urls of post %s: %s", post.id, e.reason)
        return PostOutput(post=None, errors=[EditError(e.code, e.message)], success=False)
    return PostOutput(post=post.model_copy(update={"images": images, "cover_image": cover}))
