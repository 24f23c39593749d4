"""Platform request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class PlatformCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = None


class PlatformCategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None

    model_config = {"from_attributes": True}


class PlatformCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: int | None = None
    website: str | None = Field(None, max_length=255)
    description: str | None = None


class PlatformResponse(BaseModel):
    id: int
    name: str
    category_id: int | None
    website: str | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
