"""Schemas for shared resources."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

AccessLevel = Literal["all", "admin"]


class ResourceOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    title: str
    description: str | None
    original_name: str
    content_type: str
    size_bytes: int
    access_level: AccessLevel
    download_count: int = Field(..., ge=0)
    uploaded_by: int | None
    uploaded_at: datetime | None
    updated_at: datetime | None


class ResourceListResponse(BaseModel):
    resources: list[ResourceOut]


class ResourceCountResponse(BaseModel):
    count: int = Field(..., ge=0)


class ResourceUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    access_level: AccessLevel | None = None
