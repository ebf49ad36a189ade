"""Content posts API: CRUD, one-off scheduling, calendar and evergreen distribution."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.errors import ValidationError
from app.schemas.content import (
    CalendarEntry,
    CalendarResponse,
    PostCreate,
    PostOut,
    PostUpdate,
    RescheduleRequest,
    ScheduleRequest,
    ScheduleResponse,
)
from app.schemas.evergreen import AssignmentRef, EvergreenScheduleRequest, EvergreenScheduleResponse
from app.services.content_service import (
    calendar,
    create_post,
    delete_post,
    get_post,
    list_posts,
    reschedule_post,
    schedule_one_off,
    update_post,
)
from app.services.evergreen_service import schedule_evergreen
from app.services.targeting_service import resolve_by_tag
from app.utils.query_params import optional_bool_query

router = APIRouter(prefix="/content-posts", tags=["content-posts"])


@router.get("", response_model=List[PostOut])
async def get_posts(
    brand_id: Optional[int] = Query(None, alias="brandId", description="Required for admins"),
    evergreen: Optional[str] = Query(None, description="true | false; omitted = all posts"),
    post_status: Optional[str] = Query(None, alias="status"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[PostOut]:
    posts = await list_posts(
        db,
        ctx,
        ctx.resolve_brand_id(brand_id),
        evergreen=optional_bool_query(evergreen),
        status=post_status,
    )
    return [PostOut.model_validate(p) for p in posts]


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def post_content(
    payload: PostCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    post = await create_post(
        db,
        ctx,
        brand_id=ctx.resolve_brand_id(payload.brand_id),
        title=payload.title,
        description=payload.description,
        platforms=payload.platforms,
        image_url=payload.image_url,
        video_url=payload.video_url,
        scheduled_date=payload.scheduled_date,
        status=payload.status,
        is_evergreen=payload.is_evergreen,
        tags=payload.tags,
        category=payload.category,
    )
    return PostOut.model_validate(post)


@router.post("/evergreen-schedule", response_model=EvergreenScheduleResponse)
async def post_evergreen_schedule(
    payload: EvergreenScheduleRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> EvergreenScheduleResponse:
    """
    Assign distinct evergreen posts to the target partners (partnerIds, or partnerTag) for one date.
    Not idempotent: every call creates a new batch with its own batchId; clients should not retry blindly.
    400 empty platforms/partners, 403 partner of another brand, 404 no qualifying evergreen posts.
    """
    brand_id = ctx.resolve_brand_id(payload.brand_id)
    if payload.partner_ids is not None:
        partner_ids = payload.partner_ids
    elif payload.partner_tag and payload.partner_tag.strip():
        partner_ids = await resolve_by_tag(db, brand_id, payload.partner_tag.strip())
    else:
        raise ValidationError("no_partners_selected", "Provide partnerIds or partnerTag")
    batch = await schedule_evergreen(
        db,
        ctx,
        brand_id=brand_id,
        scheduled_date=payload.scheduled_date,
        platforms=payload.platforms,
        partner_ids=partner_ids,
        scheduled_time=payload.scheduled_time,
    )
    return EvergreenScheduleResponse(
        scheduled=batch.scheduled,
        posts_used=batch.posts_used,
        batch_id=batch.batch_id,
        assignments=[
            AssignmentRef(id=a.id, post_id=a.post_id, partner_id=a.partner_id)
            for a in batch.assignments
        ],
    )


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    start: datetime = Query(...),
    end: datetime = Query(...),
    brand_id: Optional[int] = Query(None, alias="brandId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> CalendarResponse:
    """Dated one-off posts and evergreen assignments between start and end."""
    entries = await calendar(db, ctx, ctx.resolve_brand_id(brand_id), start, end)
    return CalendarResponse(
        start=start,
        end=end,
        entries=[CalendarEntry(**e) for e in entries],
    )


@router.get("/{post_id}", response_model=PostOut)
async def get_post_by_id(
    post_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    post = await get_post(db, ctx, post_id)
    return PostOut.model_validate(post)


@router.patch("/{post_id}", response_model=PostOut)
async def patch_post(
    post_id: int,
    payload: PostUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    post = await update_post(db, ctx, post_id, payload.model_dump(exclude_unset=True))
    return PostOut.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_by_id(
    post_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await delete_post(db, ctx, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/schedule", response_model=ScheduleResponse)
async def post_schedule(
    post_id: int,
    payload: ScheduleRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> ScheduleResponse:
    """Schedule a regular post for explicit partners (one pending assignment each)."""
    post, assignments, batch_id = await schedule_one_off(
        db,
        ctx,
        post_id,
        scheduled_date=payload.scheduled_date,
        partner_ids=payload.partner_ids,
        custom_footer=payload.custom_footer,
        custom_tags=payload.custom_tags,
    )
    return ScheduleResponse(
        post=PostOut.model_validate(post),
        assignment_ids=[a.id for a in assignments],
        batch_id=batch_id,
    )


@router.post("/{post_id}/reschedule", response_model=PostOut)
async def post_reschedule(
    post_id: int,
    payload: RescheduleRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> PostOut:
    post = await reschedule_post(db, ctx, post_id, payload.scheduled_date)
    return PostOut.model_validate(post)
