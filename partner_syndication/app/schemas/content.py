"""Content post request/response."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class PostCreate(CamelModel):
    """Body for POST /content-posts. Evergreen posts must not carry scheduledDate."""

    brand_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=512)
    description: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    platforms: List[str]
    scheduled_date: Optional[datetime] = None
    status: Optional[str] = Field(None, description="draft (default) | scheduled | published | automated")
    is_evergreen: bool = False
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None


class PostUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    platforms: Optional[List[str]] = None
    scheduled_date: Optional[datetime] = None
    status: Optional[str] = None
    is_evergreen: Optional[bool] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None


class PostOut(CamelModel):
    id: int
    brand_id: int
    creator_id: Optional[int] = None
    title: str
    description: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    platforms: List[str]
    scheduled_date: Optional[datetime] = None
    published_date: Optional[datetime] = None
    status: str
    is_evergreen: bool
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScheduleRequest(CamelModel):
    """Body for POST /content-posts/{id}/schedule (one-off distribution)."""

    scheduled_date: datetime
    partner_ids: List[int]
    custom_footer: Optional[str] = None
    custom_tags: Optional[str] = None


class RescheduleRequest(CamelModel):
    scheduled_date: datetime


class ScheduleResponse(CamelModel):
    post: PostOut
    assignment_ids: List[int]
    batch_id: str


class CalendarEntry(CamelModel):
    post_id: int
    title: str
    platforms: List[str]
    status: str
    is_evergreen: bool
    scheduled_date: datetime
    partner_ids: List[int]
    batch_id: Optional[str] = None


class CalendarResponse(CamelModel):
    start: datetime
    end: datetime
    entries: List[CalendarEntry]
