"""Partner invite request/response."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class InviteCreate(CamelModel):
    brand_id: Optional[int] = None
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    message: Optional[str] = None


class InviteOut(CamelModel):
    token: str
    brand_id: int
    email: str
    name: str
    message: Optional[str] = None
    expires_at: datetime
    created_at: Optional[datetime] = None


class InviteCreated(InviteOut):
    invite_link: str


class InviteVerifyResponse(CamelModel):
    valid: bool
    brand_id: int
    brand_name: Optional[str] = None
    email: str
    name: str
    expires_at: datetime


class InviteAccept(CamelModel):
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    user_id: Optional[int] = None
