"""Evergreen distribution request/response."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class EvergreenScheduleRequest(CamelModel):
    """
    Body for POST /content-posts/evergreen-schedule.
    Target partners by partnerIds or by partnerTag. scheduledTime ("HH:MM") overrides the time of scheduledDate.
    Empty platforms/partners are rejected by the engine (400), not by the schema.
    """

    scheduled_date: datetime
    scheduled_time: Optional[str] = Field(None, description="HH:MM, merged into scheduledDate")
    platforms: List[str] = Field(default_factory=list)
    brand_id: Optional[int] = None
    partner_ids: Optional[List[int]] = None
    partner_tag: Optional[str] = None


class AssignmentRef(CamelModel):
    id: int
    post_id: int
    partner_id: int


class EvergreenScheduleResponse(CamelModel):
    """Not idempotent: each call creates a new batch."""

    scheduled: int
    posts_used: int
    batch_id: str
    assignments: List[AssignmentRef]


class AssignmentOut(CamelModel):
    id: int
    post_id: int
    partner_id: int
    batch_id: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    platforms: List[str] = Field(default_factory=list)
    custom_footer: Optional[str] = None
    custom_tags: Optional[str] = None
    status: str
    published_url: Optional[str] = None
    published_date: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
