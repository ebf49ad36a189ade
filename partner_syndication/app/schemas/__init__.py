"""Pydantic request/response schemas."""
from app.schemas.common import CamelModel, ErrorResponse, MessageResponse
from app.schemas.brands import BrandCreate, BrandOut
from app.schemas.partners import (
    PartnerCreate,
    PartnerUpdate,
    PartnerOut,
    PartnerBulkCreate,
    PartnerBulkResult,
)
from app.schemas.content import PostCreate, PostUpdate, PostOut
from app.schemas.evergreen import (
    EvergreenScheduleRequest,
    EvergreenScheduleResponse,
    AssignmentOut,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "MessageResponse",
    "BrandCreate",
    "BrandOut",
    "PartnerCreate",
    "PartnerUpdate",
    "PartnerOut",
    "PartnerBulkCreate",
    "PartnerBulkResult",
    "PostCreate",
    "PostUpdate",
    "PostOut",
    "EvergreenScheduleRequest",
    "EvergreenScheduleResponse",
    "AssignmentOut",
]
