"""Brand request/response."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class BrandCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    owner_user_id: Optional[int] = None
    logo: Optional[str] = None
    primary_color: Optional[str] = None


class BrandOut(CamelModel):
    id: int
    name: str
    owner_user_id: Optional[int] = None
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    created_at: Optional[datetime] = None


class BrandUpdate(CamelModel):
    """Body for PATCH /brands/{id}; only the fields present are changed. ownerUserId is admin only."""

    name: Optional[str] = None
    owner_user_id: Optional[int] = None
    logo: Optional[str] = None
    primary_color: Optional[str] = None
