from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from folio.core.entities import Category, Visibility

# Client payloads are camelCase
_camel = ConfigDict(populate_by_name=True)


# --- Posts ---
class ImagePayload(BaseModel):
    url: str
    description: str | None = None


class PostEditRequest(BaseModel):
    model_config = _camel

    title: str
    description: str = ""
    category: Category
    tags: list[str] = []
    visibility: Visibility
    is_draft: bool = Field(alias="isDraft")
    images: list[ImagePayload] = []
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")


class ImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    url: str
    description: str | None = None


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    title: str
    description: str
    category: Category
    tags: list[str]
    visibility: Visibility
    is_draft: bool = Field(alias="isDraft")
    cover_image: str | None = Field(default=None, alias="coverImage")
    images: list[ImageResponse] = []
    updated_at: datetime = Field(alias="updatedAt")


# --- Uploads ---
class UploadRequest(BaseModel):
    model_config = _camel

    file_name: str = Field(alias="fileName")
    content_type: str = Field(alias="contentType")


class UploadResponse(BaseModel):
    model_config = _camel

    upload_url: str = Field(alias="uploadUrl")
    key: str
    file_url: str = Field(alias="fileUrl")
    expires_in: int = Field(alias="expiresIn")


# --- Errors ---
class ErrorDetail(BaseModel):
    code: str
    message: str
