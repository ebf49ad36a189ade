"""Media library: brand-owned references to uploaded files (storage itself is external)."""
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext
from app.errors import NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import MediaItem
from app.services.brand_service import get_brand_or_404

logger = get_logger(__name__)

MEDIA_EDITABLE_FIELDS = ("name", "file_url", "file_type", "description", "tags")


async def create_media(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    name: str,
    file_url: str,
    file_type: str,
    description: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> MediaItem:
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    await get_brand_or_404(db, brand_id)
    item = MediaItem(
        brand_id=brand_id,
        name=name.strip(),
        file_url=file_url,
        file_type=file_type,
        description=description,
        tags=list(tags or []),
    )
    db.add(item)
    await db.flush()
    await db.refresh(item)
    logger.info("media.created", brand_id=brand_id, media_id=item.id)
    return item


async def get_media(db: AsyncSession, ctx: RequestContext, media_id: int) -> MediaItem:
    r = await db.execute(select(MediaItem).where(MediaItem.id == media_id))
    item = r.scalar_one_or_none()
    if not item:
        raise NotFoundError("media_not_found", "Media item not found", extra={"mediaId": media_id})
    ctx.ensure_brand(item.brand_id)
    return item


async def list_media(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    tags: Optional[List[str]] = None,
) -> List[MediaItem]:
    """Newest first; with tags, items carrying any of them."""
    ctx.ensure_brand(brand_id)
    r = await db.execute(
        select(MediaItem)
        .where(MediaItem.brand_id == brand_id)
        .order_by(MediaItem.created_at.desc(), MediaItem.id.desc())
    )
    items = list(r.scalars().all())
    if tags:
        wanted = set(tags)
        items = [i for i in items if wanted.intersection(i.tags or [])]
    return items


async def delete_media(db: AsyncSession, ctx: RequestContext, media_id: int) -> None:
    ctx.ensure_brand_user()
    item = await get_media(db, ctx, media_id)
    await db.delete(item)
    await db.flush()
    logger.info("media.deleted", media_id=media_id)


async def update_media(
    db: AsyncSession,
    ctx: RequestContext,
    media_id: int,
    fields: Dict[str, Any],
) -> MediaItem:
    """Apply the present fields; name, fileUrl and fileType cannot be blanked."""
    ctx.ensure_brand_user()
    item = await get_media(db, ctx, media_id)
    updates = {k: v for k, v in fields.items() if k in MEDIA_EDITABLE_FIELDS}
    if not updates:
        raise ValidationError(
            "no_updatable_fields", "No valid fields to update", extra={"allowed": list(MEDIA_EDITABLE_FIELDS)}
        )
    for key in ("name", "file_url", "file_type"):
        if key in updates and not (updates[key] or "").strip():
            raise ValidationError("field_required", f"{key} cannot be empty", extra={"field": key})
    if "tags" in updates:
        updates["tags"] = list(updates["tags"] or [])
    for key, value in updates.items():
        setattr(item, key, value)
    await db.flush()
    await db.refresh(item)
    logger.info("media.updated", media_id=item.id, fields=sorted(updates))
    return item


async def list_media_tags(db: AsyncSession, ctx: RequestContext, brand_id: int) -> List[str]:
    """Sorted unique tags used across the brand's library."""
    tags = set()
    for item in await list_media(db, ctx, brand_id):
        tags.update(item.tags or [])
    return sorted(tags)
