"""
Content store: brand-authored posts, one-off scheduling to partners, calendar view.
Invariant: evergreen posts never carry scheduled_date; their dates live on assignments.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import (
    ASSIGNMENT_PENDING,
    POST_DRAFT,
    POST_PUBLISHED,
    POST_SCHEDULED,
    POST_STATUSES,
    SUPPORTED_PLATFORMS,
)
from app.context import RequestContext
from app.errors import NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import ContentPost, PostAssignment
from app.services.brand_service import get_brand_or_404
from app.services.targeting_service import resolve_by_ids
from app.utils.datetime_utils import ensure_utc

logger = get_logger(__name__)

POST_EDITABLE_FIELDS = (
    "title",
    "description",
    "image_url",
    "video_url",
    "platforms",
    "scheduled_date",
    "status",
    "is_evergreen",
    "tags",
    "category",
)


def validate_platforms(platforms: Optional[Sequence[str]]) -> List[str]:
    """Non-empty, known platforms; duplicates dropped, order kept."""
    cleaned = list(dict.fromkeys((p or "").strip().lower() for p in (platforms or [])))
    cleaned = [p for p in cleaned if p]
    if not cleaned:
        raise ValidationError("no_platforms_selected", "Select at least one platform")
    unknown = [p for p in cleaned if p not in SUPPORTED_PLATFORMS]
    if unknown:
        raise ValidationError(
            "unsupported_platform",
            f"Unsupported platform(s): {', '.join(unknown)}",
            extra={"platforms": unknown},
        )
    return cleaned


def _check_post_status(value: str) -> str:
    if value not in POST_STATUSES:
        raise ValidationError(
            "invalid_post_status",
            f"status must be one of {', '.join(POST_STATUSES)}",
            extra={"status": value},
        )
    return value


def _check_evergreen_undated(is_evergreen: bool, scheduled_date: Optional[datetime]) -> None:
    if is_evergreen and scheduled_date is not None:
        raise ValidationError(
            "evergreen_post_cannot_be_dated",
            "Evergreen posts cannot have a scheduled date; dates are set per assignment",
        )


async def get_post_or_404(db: AsyncSession, post_id: int) -> ContentPost:
    r = await db.execute(select(ContentPost).where(ContentPost.id == post_id))
    post = r.scalar_one_or_none()
    if not post:
        raise NotFoundError("post_not_found", "Content post not found", extra={"postId": post_id})
    return post


async def get_post(db: AsyncSession, ctx: RequestContext, post_id: int) -> ContentPost:
    post = await get_post_or_404(db, post_id)
    ctx.ensure_brand(post.brand_id)
    return post


async def create_post(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    title: str,
    description: str,
    platforms: Sequence[str],
    image_url: Optional[str] = None,
    video_url: Optional[str] = None,
    scheduled_date: Optional[datetime] = None,
    status: Optional[str] = None,
    is_evergreen: bool = False,
    tags: Optional[List[str]] = None,
    category: Optional[str] = None,
) -> ContentPost:
    """Create a post. Without an explicit status a dated post is scheduled, otherwise draft. Caller commits."""
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    await get_brand_or_404(db, brand_id)
    platforms = validate_platforms(platforms)
    _check_evergreen_undated(is_evergreen, scheduled_date)
    if status:
        _check_post_status(status)
    else:
        status = POST_SCHEDULED if scheduled_date else POST_DRAFT
    post = ContentPost(
        brand_id=brand_id,
        creator_id=ctx.user_id,
        title=title.strip(),
        description=description,
        image_url=image_url,
        video_url=video_url,
        platforms=platforms,
        scheduled_date=ensure_utc(scheduled_date),
        status=status,
        is_evergreen=is_evergreen,
        tags=list(tags or []),
        category=category,
    )
    db.add(post)
    await db.flush()
    await db.refresh(post)
    logger.info("content.post_created", brand_id=brand_id, post_id=post.id, evergreen=is_evergreen)
    return post


async def list_posts(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    evergreen: Optional[bool] = None,
    status: Optional[str] = None,
) -> List[ContentPost]:
    """Newest first."""
    ctx.ensure_brand(brand_id)
    q = select(ContentPost).where(ContentPost.brand_id == brand_id)
    if evergreen is not None:
        q = q.where(ContentPost.is_evergreen.is_(evergreen))
    if status:
        q = q.where(ContentPost.status == _check_post_status(status))
    r = await db.execute(q.order_by(ContentPost.created_at.desc(), ContentPost.id.desc()))
    return list(r.scalars().all())


async def update_post(
    db: AsyncSession,
    ctx: RequestContext,
    post_id: int,
    fields: Dict[str, Any],
) -> ContentPost:
    """Apply the given fields, then re-check the evergreen/date invariant on the result."""
    ctx.ensure_brand_user()
    post = await get_post(db, ctx, post_id)
    updates = {k: v for k, v in fields.items() if k in POST_EDITABLE_FIELDS}
    if not updates:
        raise ValidationError("no_updatable_fields", "No valid fields to update")
    for key in ("title", "description"):
        if key in updates and not (updates[key] or "").strip():
            raise ValidationError("field_required", f"{key} cannot be empty", extra={"field": key})
    if "platforms" in updates:
        updates["platforms"] = validate_platforms(updates["platforms"])
    if "status" in updates:
        if updates["status"] is None:
            raise ValidationError("invalid_post_status", "status cannot be null")
        _check_post_status(updates["status"])
    if "scheduled_date" in updates:
        updates["scheduled_date"] = ensure_utc(updates["scheduled_date"])
    if "is_evergreen" in updates:
        updates["is_evergreen"] = bool(updates["is_evergreen"])
    if "tags" in updates:
        updates["tags"] = list(updates["tags"] or [])
    _check_evergreen_undated(
        updates.get("is_evergreen", post.is_evergreen),
        updates.get("scheduled_date", post.scheduled_date),
    )
    for key, value in updates.items():
        setattr(post, key, value)
    await db.flush()
    await db.refresh(post)
    logger.info("content.post_updated", post_id=post.id, fields=sorted(updates))
    return post


async def delete_post(db: AsyncSession, ctx: RequestContext, post_id: int) -> None:
    """Delete the post and its assignments."""
    ctx.ensure_brand_user()
    post = await get_post(db, ctx, post_id)
    await db.execute(delete(PostAssignment).where(PostAssignment.post_id == post.id))
    await db.delete(post)
    await db.flush()
    logger.info("content.post_deleted", post_id=post_id)


async def schedule_one_off(
    db: AsyncSession,
    ctx: RequestContext,
    post_id: int,
    scheduled_date: datetime,
    partner_ids: Sequence[int],
    custom_footer: Optional[str] = None,
    custom_tags: Optional[str] = None,
) -> Tuple[ContentPost, List[PostAssignment], str]:
    """
    Distribute a regular post to explicit partners: the post becomes scheduled on scheduled_date
    and gets one pending assignment per partner. Returns (post, assignments, batch_id).
    """
    ctx.ensure_brand_user()
    post = await get_post(db, ctx, post_id)
    if post.is_evergreen:
        raise ValidationError(
            "evergreen_post_not_schedulable",
            "Evergreen posts are distributed through evergreen scheduling",
        )
    if not partner_ids:
        raise ValidationError("no_partners_selected", "Select at least one partner")
    targets = await resolve_by_ids(db, post.brand_id, partner_ids)
    when = ensure_utc(scheduled_date)
    batch_id = uuid.uuid4().hex
    post.scheduled_date = when
    post.status = POST_SCHEDULED
    assignments = [
        PostAssignment(
            post_id=post.id,
            partner_id=partner_id,
            batch_id=batch_id,
            scheduled_at=when,
            platforms=list(post.platforms),
            custom_footer=custom_footer,
            custom_tags=custom_tags,
            status=ASSIGNMENT_PENDING,
        )
        for partner_id in targets
    ]
    db.add_all(assignments)
    await db.flush()
    await db.refresh(post)
    logger.info("content.post_scheduled", post_id=post.id, partners=len(targets), batch_id=batch_id)
    return post, assignments, batch_id


async def reschedule_post(
    db: AsyncSession,
    ctx: RequestContext,
    post_id: int,
    scheduled_date: datetime,
) -> ContentPost:
    """Move a one-off post to a new date. Evergreen and already published posts are rejected."""
    ctx.ensure_brand_user()
    post = await get_post(db, ctx, post_id)
    if post.is_evergreen:
        raise ValidationError("evergreen_post_cannot_be_dated", "Evergreen posts cannot be rescheduled")
    if post.status == POST_PUBLISHED:
        raise ValidationError("post_already_published", "Published posts cannot be rescheduled")
    post.scheduled_date = ensure_utc(scheduled_date)
    post.status = POST_SCHEDULED
    await db.flush()
    await db.refresh(post)
    logger.info("content.post_rescheduled", post_id=post.id)
    return post


async def calendar(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    start: datetime,
    end: datetime,
) -> List[Dict[str, Any]]:
    """
    Calendar entries in [start, end]: dated one-off posts (scheduled or published) plus
    evergreen assignments grouped by (post, batch, scheduled_at). Sorted by date.
    """
    ctx.ensure_brand(brand_id)
    start, end = ensure_utc(start), ensure_utc(end)
    if end < start:
        raise ValidationError("invalid_date_range", "end must not be before start")

    r = await db.execute(
        select(ContentPost)
        .where(
            ContentPost.brand_id == brand_id,
            ContentPost.is_evergreen.is_(False),
            ContentPost.status.in_((POST_SCHEDULED, POST_PUBLISHED)),
            ContentPost.scheduled_date.is_not(None),
            ContentPost.scheduled_date >= start,
            ContentPost.scheduled_date <= end,
        )
        .order_by(ContentPost.scheduled_date)
    )
    one_off = list(r.scalars().all())
    partners_by_post: Dict[int, List[int]] = {p.id: [] for p in one_off}
    if one_off:
        r = await db.execute(
            select(PostAssignment.post_id, PostAssignment.partner_id)
            .where(PostAssignment.post_id.in_(list(partners_by_post)))
            .order_by(PostAssignment.partner_id)
        )
        for post_id, partner_id in r.all():
            if partner_id not in partners_by_post[post_id]:
                partners_by_post[post_id].append(partner_id)

    entries: List[Dict[str, Any]] = [
        {
            "post_id": p.id,
            "title": p.title,
            "platforms": list(p.platforms),
            "status": p.status,
            "is_evergreen": False,
            "scheduled_date": ensure_utc(p.scheduled_date),
            "partner_ids": partners_by_post[p.id],
            "batch_id": None,
        }
        for p in one_off
    ]

    r = await db.execute(
        select(PostAssignment, ContentPost)
        .join(ContentPost, ContentPost.id == PostAssignment.post_id)
        .where(
            ContentPost.brand_id == brand_id,
            ContentPost.is_evergreen.is_(True),
            PostAssignment.scheduled_at.is_not(None),
            PostAssignment.scheduled_at >= start,
            PostAssignment.scheduled_at <= end,
        )
        .order_by(PostAssignment.scheduled_at, PostAssignment.id)
    )
    grouped: Dict[Tuple[int, Optional[str], datetime], Dict[str, Any]] = {}
    for assignment, post in r.all():
        when = ensure_utc(assignment.scheduled_at)
        key = (post.id, assignment.batch_id, when)
        entry = grouped.get(key)
        if entry is None:
            entry = {
                "post_id": post.id,
                "title": post.title,
                "platforms": list(assignment.platforms or post.platforms),
                "status": post.status,
                "is_evergreen": True,
                "scheduled_date": when,
                "partner_ids": [],
                "batch_id": assignment.batch_id,
            }
            grouped[key] = entry
        entry["partner_ids"].append(assignment.partner_id)
    entries.extend(grouped.values())
    entries.sort(key=lambda e: (e["scheduled_date"], e["post_id"]))
    return entries
