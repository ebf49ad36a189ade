"""Media library request/response."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class MediaCreate(CamelModel):
    brand_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1024)
    file_type: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class MediaUpdate(CamelModel):
    """Body for PATCH /media/{id}; only the fields present are changed."""

    name: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


class MediaOut(CamelModel):
    id: int
    brand_id: int
    name: str
    file_url: str
    file_type: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class MediaTagsResponse(CamelModel):
    tags: List[str]
