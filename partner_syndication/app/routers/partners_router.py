"""Retail partners API: directory, bulk import, tags, stats, a partner's assignments."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.evergreen import AssignmentOut
from app.schemas.partners import (
    PartnerBulkCreate,
    PartnerBulkError,
    PartnerBulkResult,
    PartnerCreate,
    PartnerOut,
    PartnerStatsResponse,
    PartnerTagsResponse,
    PartnerUpdate,
)
from app.services.assignment_service import list_assignments
from app.services.partner_service import (
    bulk_create_partners,
    create_partner,
    get_partner,
    list_partner_tags,
    list_partners,
    partner_status_counts,
    update_partner,
)

router = APIRouter(prefix="/retail-partners", tags=["retail-partners"])


@router.get("", response_model=List[PartnerOut])
async def get_partners(
    brand_id: Optional[int] = Query(None, alias="brandId", description="Required for admins"),
    partner_status: Optional[str] = Query(None, alias="status"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[PartnerOut]:
    partners = await list_partners(db, ctx, ctx.resolve_brand_id(brand_id), status=partner_status)
    return [PartnerOut.model_validate(p) for p in partners]


@router.post("", response_model=PartnerOut, status_code=status.HTTP_201_CREATED)
async def post_partner(
    payload: PartnerCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerOut:
    partner = await create_partner(
        db,
        ctx,
        brand_id=ctx.resolve_brand_id(payload.brand_id),
        name=payload.name,
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
        address=payload.address,
        footer_template=payload.footer_template,
        tags=payload.tags,
        status=payload.status,
    )
    return PartnerOut.model_validate(partner)


@router.post("/bulk", response_model=PartnerBulkResult, status_code=status.HTTP_201_CREATED)
async def post_partners_bulk(
    payload: PartnerBulkCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerBulkResult:
    """Bulk import; invalid rows come back in errors with their index."""
    created, errors = await bulk_create_partners(
        db,
        ctx,
        brand_id=ctx.resolve_brand_id(payload.brand_id),
        rows=[row.model_dump() for row in payload.partners],
    )
    return PartnerBulkResult(
        created=[PartnerOut.model_validate(p) for p in created],
        errors=[PartnerBulkError(**e) for e in errors],
    )


@router.get("/tags", response_model=PartnerTagsResponse)
async def get_partner_tags(
    brand_id: Optional[int] = Query(None, alias="brandId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerTagsResponse:
    tags = await list_partner_tags(db, ctx, ctx.resolve_brand_id(brand_id))
    return PartnerTagsResponse(tags=tags)


@router.get("/stats", response_model=PartnerStatsResponse)
async def get_partner_stats(
    brand_id: Optional[int] = Query(None, alias="brandId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerStatsResponse:
    counts = await partner_status_counts(db, ctx, ctx.resolve_brand_id(brand_id))
    return PartnerStatsResponse(total=sum(counts.values()), by_status=counts)


@router.get("/{partner_id}", response_model=PartnerOut)
async def get_partner_by_id(
    partner_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerOut:
    partner = await get_partner(db, ctx, partner_id)
    return PartnerOut.model_validate(partner)


@router.patch("/{partner_id}", response_model=PartnerOut)
async def patch_partner(
    partner_id: int,
    payload: PartnerUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PartnerOut:
    """Partner users may only change footerTemplate, contactPhone, contactEmail, address."""
    partner = await update_partner(db, ctx, partner_id, payload.model_dump(exclude_unset=True))
    return PartnerOut.model_validate(partner)


@router.get("/{partner_id}/assignments", response_model=List[AssignmentOut])
async def get_partner_assignments(
    partner_id: int,
    assignment_status: Optional[str] = Query(None, alias="status"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[AssignmentOut]:
    assignments = await list_assignments(db, ctx, partner_id, status=assignment_status)
    return [AssignmentOut.model_validate(a) for a in assignments]
