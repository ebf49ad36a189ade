"""Partner invites API."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.invites import (
    InviteAccept,
    InviteCreate,
    InviteCreated,
    InviteOut,
    InviteVerifyResponse,
)
from app.schemas.partners import PartnerOut
from app.services.invite_service import (
    accept_invite,
    cancel_invite,
    create_invite,
    invite_link,
    list_invites,
    verify_invite,
)

router = APIRouter(prefix="/invites", tags=["invites"])


@router.post("", response_model=InviteCreated, status_code=status.HTTP_201_CREATED)
async def post_invite(
    payload: InviteCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> InviteCreated:
    """Create an invite and return the link to send (email delivery is external)."""
    invite = await create_invite(
        db,
        ctx,
        brand_id=ctx.resolve_brand_id(payload.brand_id),
        email=payload.email,
        name=payload.name,
        message=payload.message,
    )
    base_url = get_settings().public_base_url or str(request.base_url)
    out = InviteOut.model_validate(invite)
    return InviteCreated(**out.model_dump(), invite_link=invite_link(base_url, invite.token))


@router.get("", response_model=List[InviteOut])
async def get_invites(
    brand_id: Optional[int] = Query(None, alias="brandId"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[InviteOut]:
    invites = await list_invites(db, ctx, ctx.resolve_brand_id(brand_id))
    return [InviteOut.model_validate(i) for i in invites]


@router.get("/verify", response_model=InviteVerifyResponse)
async def get_verify_invite(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> InviteVerifyResponse:
    """Public: 404 unknown token, 410 expired, 409 already used."""
    invite, brand = await verify_invite(db, token)
    return InviteVerifyResponse(
        valid=True,
        brand_id=brand.id,
        brand_name=brand.name,
        email=invite.email,
        name=invite.name,
        expires_at=invite.expires_at,
    )


@router.post("/{token}/accept", response_model=PartnerOut, status_code=status.HTTP_201_CREATED)
async def post_accept_invite(
    token: str,
    payload: InviteAccept,
    db: AsyncSession = Depends(get_db),
) -> PartnerOut:
    """Public: the token itself authorizes creating the invited partner."""
    partner = await accept_invite(
        db,
        token,
        contact_phone=payload.contact_phone,
        address=payload.address,
        user_id=payload.user_id,
    )
    return PartnerOut.model_validate(partner)


@router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invite(
    token: str,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await cancel_invite(db, ctx, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
