from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from folio.adapters.clock import SystemClock
from folio.api.deps import get_clock, get_current_owner_id, get_presigner, get_rules
from folio.api.schemas import ErrorDetail, UploadRequest, UploadResponse
from folio.components.uploads import IssueUploadInput, run_issue_upload
from folio.core.errors import StorageOperationFailed
from folio.core.ports import PresignerPort
from folio.rules.models import Rules

router = APIRouter()


@router.post("/presigned-url", response_model=UploadResponse)
def issue_presigned_url(
    req: UploadRequest,
    owner_id: UUID = Depends(get_current_owner_id),
    rules: Rules = Depends(get_rules),
    presigner: PresignerPort = Depends(get_presigner),
    time: SystemClock = Depends(get_clock),
) -> UploadResponse:
    """Presigned URL for uploading one image to a temporary key."""
    inp = IssueUploadInput(
        owner_user_id=owner_id,
        file_name=req.file_name,
        content_type=req.content_type,
    )
    try:
        result = run_issue_upload(inp, presigner=presigner, rules=rules, time=time)
    except StorageOperationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=ErrorDetail(code=e.code, message="Upload URL could not be issued").model_dump(),
        ) from e

    if not result.success or result.ticket is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[{"code": e.code, "message": e.message, "field": e.field} for e in result.errors],
        )

    ticket = result.ticket
    return UploadResponse(
        upload_url=ticket.upload_url,
        key=ticket.key,
        file_url=ticket.canonical_url,
        expires_in=ticket.expires_in,
    )
