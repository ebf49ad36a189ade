"""Brand (tenant) lookup, creation and edits."""
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext
from app.errors import ForbiddenError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import Brand

logger = get_logger(__name__)

BRAND_OWNER_FIELDS = ("name", "logo", "primary_color")
BRAND_ADMIN_FIELDS = BRAND_OWNER_FIELDS + ("owner_user_id",)


async def create_brand(
    db: AsyncSession,
    ctx: RequestContext,
    name: str,
    owner_user_id: Optional[int] = None,
    logo: Optional[str] = None,
    primary_color: Optional[str] = None,
) -> Brand:
    """Admin only. Caller commits."""
    if not ctx.is_admin:
        raise ForbiddenError("admin_required", "Only admins can create brands")
    brand = Brand(
        name=name.strip(),
        owner_user_id=owner_user_id,
        logo=logo,
        primary_color=primary_color,
    )
    db.add(brand)
    await db.flush()
    await db.refresh(brand)
    logger.info("brand.created", brand_id=brand.id)
    return brand


async def get_brand_or_404(db: AsyncSession, brand_id: int) -> Brand:
    r = await db.execute(select(Brand).where(Brand.id == brand_id))
    brand = r.scalar_one_or_none()
    if not brand:
        raise NotFoundError("brand_not_found", "Brand not found", extra={"brandId": brand_id})
    return brand


async def get_brand(db: AsyncSession, ctx: RequestContext, brand_id: int) -> Brand:
    ctx.ensure_brand(brand_id)
    return await get_brand_or_404(db, brand_id)


async def list_brands(db: AsyncSession, ctx: RequestContext) -> List[Brand]:
    """Admins see every brand; brand and partner users only the brand they belong to."""
    q = select(Brand).order_by(Brand.id)
    if not ctx.is_admin:
        q = q.where(Brand.id == ctx.brand_id)
    r = await db.execute(q)
    return list(r.scalars().all())


async def update_brand(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    fields: Dict[str, Any],
) -> Brand:
    """
    Brand users edit their own brand, admins any brand. Only admins may move ownership
    (owner_user_id); for brand users that field is dropped.
    """
    ctx.ensure_brand_user()
    brand = await get_brand(db, ctx, brand_id)
    allowed = BRAND_ADMIN_FIELDS if ctx.is_admin else BRAND_OWNER_FIELDS
    updates = {k: v for k, v in fields.items() if k in allowed}
    if not updates:
        raise ValidationError("no_updatable_fields", "No valid fields to update", extra={"allowed": list(allowed)})
    if "name" in updates:
        if not (updates["name"] or "").strip():
            raise ValidationError("field_required", "name cannot be empty", extra={"field": "name"})
        updates["name"] = updates["name"].strip()
    for key, value in updates.items():
        setattr(brand, key, value)
    await db.flush()
    await db.refresh(brand)
    logger.info("brand.updated", brand_id=brand.id, fields=sorted(updates))
    return brand
