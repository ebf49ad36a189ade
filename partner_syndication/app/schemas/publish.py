"""Publish request/response for post assignments."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class PublishAssignmentRequest(CamelModel):
    platform: str = Field(..., description="facebook | instagram")


class PublishAssignmentResponse(CamelModel):
    assignment_id: int
    platform: str
    status: str
    external_post_id: Optional[str] = None
    published_url: Optional[str] = None
    published_date: Optional[datetime] = None
