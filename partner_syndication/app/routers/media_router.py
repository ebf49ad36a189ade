"""Media library API."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.media import MediaCreate, MediaOut, MediaTagsResponse, MediaUpdate
from app.services.media_service import (
    create_media,
    delete_media,
    get_media,
    list_media,
    list_media_tags,
    update_media,
)

router = APIRouter(prefix="/media", tags=["media"])


@router.get("", response_model=List[MediaOut])
async def get_media_items(
    brand_id: Optional[int] = Query(None, alias="brandId"),
    tags: Optional[List[str]] = Query(None, description="Repeatable; items with any of the tags"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[MediaOut]:
    items = await list_media(db, ctx, ctx.resolve_brand_id(brand_id), tags=tags)
    return [MediaOut.model_validate(i) for i in items]


@router.post("", response_model=MediaOut, status_code=status.HTTP_201_CREATED)
async def post_media(
    payload: MediaCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> MediaOut:
    item = await create_media(
        db,
        ctx,
        brand_id=ctx.resolve_brand_id(payload.brand_id),
        name=payload.name,
        file_url=payload.file_url,
        file_type=payload.file_type,
        description=payload.description,
        tags=payload.tags,
    )
    return MediaOut.model_validate(item)


@router.get("/tags", response_model=MediaTagsResponse)
async def get_media_tags(
    brand_id: Optional[int] = Query(None, alias="brandId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> MediaTagsResponse:
    tags = await list_media_tags(db, ctx, ctx.resolve_brand_id(brand_id))
    return MediaTagsResponse(tags=tags)


@router.get("/{media_id}", response_model=MediaOut)
async def get_media_by_id(
    media_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> MediaOut:
    item = await get_media(db, ctx, media_id)
    return MediaOut.model_validate(item)


@router.patch("/{media_id}", response_model=MediaOut)
async def patch_media(
    media_id: int,
    payload: MediaUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> MediaOut:
    item = await update_media(db, ctx, media_id, payload.model_dump(exclude_unset=True))
    return MediaOut.model_validate(item)


@router.delete("/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media_by_id(
    media_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await delete_media(db, ctx, media_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
