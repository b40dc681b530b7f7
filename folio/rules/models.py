from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class StorageRules(BaseModel):
    backend: Literal["local", "s3"] = "local"
    bucket: str
    region: str
    public_base_url: str
    temp_prefix: str = "temp"
    signed_url_ttl_seconds: int = Field(default=3600, gt=0)
    max_workers: int = Field(default=8, gt=0)
    settle_timeout_seconds: float = Field(default=30, gt=0)
    call_timeout_seconds: float = Field(default=10, gt=0)

    @field_validator("public_base_url")
    @classmethod
    def _origin_only(cls, value: str) -> str:
        # Object keys are read back from url paths, so the base must not add one
        parts = urlsplit(value.rstrip("/"))
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError("public_base_url must be an absolute http(s) url")
        if parts.path or parts.query or parts.fragment:
            raise ValueError("public_base_url must not carry a path, query or fragment")
        return f"{parts.scheme}://{parts.netloc}"


class DatabaseRules(BaseModel):
    transaction_timeout_seconds: float = Field(default=5, gt=0)


class UploadsRules(BaseModel):
    max_filename_length: int = 255
    allowlist_mime_types: list[str]
    allowlist_extensions: list[str]


class RangeRule(BaseModel):
    min: int
    max: int


class ContentRules(BaseModel):
    title: RangeRule
    max_tags: int
    categories: list[str]
    allowed_tags: list[str]


class Rules(BaseModel):
    project: ProjectRules
    storage: StorageRules
    database: DatabaseRules = Field(default_factory=DatabaseRules)
    uploads: UploadsRules
    content: ContentRules
