import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from folio.adapters.clock import SystemClock
from folio.adapters.sqlite_db import SQLitePostRepo
from folio.api.deps import (
    get_asset_lifecycle,
    get_clock,
    get_current_owner_id,
    get_post_repo,
    get_presigner,
    get_rules,
    get_uow_factory,
)
from folio.api.schemas import ErrorDetail, PostEditRequest, PostResponse
from folio.components.assets import AssetLifecycleManager
from folio.components.posts import (
    EditError,
    EditPostInput,
    GetPostInput,
    IncomingImage,
    UnitOfWorkFactory,
    run_edit,
    run_get_owned,
)
from folio.core.errors import (
    PostNotFound,
    StorageOperationFailed,
    TransactionFailed,
    Unauthorized,
)
from folio.core.ports import PresignerPort
from folio.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_CODE = {
    Unauthorized.code: status.HTTP_403_FORBIDDEN,
    PostNotFound.code: status.HTTP_404_NOT_FOUND,
    StorageOperationFailed.code: status.HTTP_502_BAD_GATEWAY,
    TransactionFailed.code: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_for(errors: list[EditError]) -> None:
    error = errors[0] if errors else EditError("internal_error", "Edit failed")
    status_code = _STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if error.code == TransactionFailed.code:
        # Database detail stays in the log
        message = "The post could not be saved"
    else:
        message = error.message
    raise HTTPException(
        status_code=status_code,
        detail=ErrorDetail(code=error.code, message=message).model_dump(),
    )


def _validate_content(req: PostEditRequest, rules: Rules) -> None:
    content = rules.content
    problems: list[str] = []

    title = req.title.strip()
    if not content.title.min <= len(title) <= content.title.max:
        problems.append(
            f"title must be {content.title.min}-{content.title.max} characters"
        )
    if req.category not in content.categories:
        problems.append(f"unknown category {req.category}")
    if len(set(req.tags)) > content.max_tags:
        problems.append(f"at most {content.max_tags} tags allowed")
    unknown = sorted(set(req.tags) - set(content.allowed_tags))
    if unknown:
        problems.append(f"unknown tags: {', '.join(unknown)}")

    if problems:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=ErrorDetail(code="invalid_post", message="; ".join(problems)).model_dump(),
        )


@router.put("/{post_id}", response_model=PostResponse)
def edit_post(
    post_id: UUID,
    req: PostEditRequest,
    owner_id: UUID = Depends(get_current_owner_id),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    lifecycle: AssetLifecycleManager = Depends(get_asset_lifecycle),
    uow: UnitOfWorkFactory = Depends(get_uow_factory),
    time: SystemClock = Depends(get_clock),
) -> PostResponse:
    """Edit a post owned by the caller, reconciling its images."""
    _validate_content(req, rules)

    inp = EditPostInput(
        post_id=post_id,
        owner_user_id=owner_id,
        title=req.title.strip(),
        description=req.description,
        category=req.category,
        tags=req.tags,
        visibility=req.visibility,
        is_draft=req.is_draft,
        images=[IncomingImage(url=i.url, description=i.description) for i in req.images],
        cover_image_url=req.cover_image_url,
    )
    result = run_edit(inp, repo=repo, lifecycle=lifecycle, uow_factory=uow, time=time)

    if not result.success or result.post is None:
        _raise_for(result.errors)

    return PostResponse.model_validate(result.post)


@router.get("/{post_id}", response_model=PostResponse)
def get_post(
    post_id: UUID,
    owner_id: UUID = Depends(get_current_owner_id),
    rules: Rules = Depends(get_rules),
    repo: SQLitePostRepo = Depends(get_post_repo),
    presigner: PresignerPort = Depends(get_presigner),
) -> PostResponse:
    """The caller's own post, with signed image URLs."""
    result = run_get_owned(
        GetPostInput(post_id=post_id, owner_user_id=owner_id),
        repo=repo,
        presigner=presigner,
        expires_in=rules.storage.signed_url_ttl_seconds,
    )
    if not result.success or result.post is None:
        _raise_for(result.errors)

    return PostResponse.model_validate(result.post)
