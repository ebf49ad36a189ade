"""Brands API."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.brands import BrandCreate, BrandOut, BrandUpdate
from app.services.brand_service import create_brand, get_brand, list_brands, update_brand

router = APIRouter(prefix="/brands", tags=["brands"])


@router.get("", response_model=List[BrandOut])
async def get_brands(
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[BrandOut]:
    """All brands for admins, the caller's own brand otherwise."""
    brands = await list_brands(db, ctx)
    return [BrandOut.model_validate(b) for b in brands]


@router.post("", response_model=BrandOut, status_code=status.HTTP_201_CREATED)
async def post_brand(
    payload: BrandCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> BrandOut:
    """Create a brand (admin only)."""
    brand = await create_brand(
        db,
        ctx,
        name=payload.name,
        owner_user_id=payload.owner_user_id,
        logo=payload.logo,
        primary_color=payload.primary_color,
    )
    return BrandOut.model_validate(brand)


@router.get("/{brand_id}", response_model=BrandOut)
async def get_brand_by_id(
    brand_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> BrandOut:
    brand = await get_brand(db, ctx, brand_id)
    return BrandOut.model_validate(brand)


@router.patch("/{brand_id}", response_model=BrandOut)
async def patch_brand(
    brand_id: int,
    payload: BrandUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> BrandOut:
    brand = await update_brand(db, ctx, brand_id, payload.model_dump(exclude_unset=True))
    return BrandOut.model_validate(brand)
