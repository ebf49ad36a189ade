"""Retail partner request/response."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class PartnerCreate(CamelModel):
    """Body for POST /retail-partners. brandId is required for admins only."""

    brand_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    contact_email: str = Field(..., min_length=3, max_length=255)
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    footer_template: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: Optional[str] = Field(None, description="pending (default) | active | needs_attention | inactive")


class PartnerUpdate(CamelModel):
    """Body for PATCH /retail-partners/{id}; only the fields present are changed."""

    name: Optional[str] = None
    status: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    footer_template: Optional[str] = None
    tags: Optional[List[str]] = None


class PartnerOut(CamelModel):
    id: int
    brand_id: int
    user_id: Optional[int] = None
    name: str
    status: str
    contact_email: str
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    footer_template: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    connection_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PartnerBulkRow(CamelModel):
    """One row of a bulk import; validated per row in the service so bad rows don't abort the batch."""

    name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    footer_template: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class PartnerBulkCreate(CamelModel):
    brand_id: Optional[int] = None
    partners: List[PartnerBulkRow]


class PartnerBulkError(CamelModel):
    index: int
    error: str


class PartnerBulkResult(CamelModel):
    created: List[PartnerOut]
    errors: List[PartnerBulkError]


class PartnerTagsResponse(CamelModel):
    tags: List[str]


class PartnerStatsResponse(CamelModel):
    total: int
    by_status: Dict[str, int]
