"""Partner social accounts: list and disconnect."""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext, get_request_context
from app.db import get_db
from app.schemas.social import SocialAccountOut
from app.services.social_connect_service import disconnect, list_accounts

router = APIRouter(prefix="/social-accounts", tags=["social-accounts"])


@router.get("/partner/{partner_id}", response_model=List[SocialAccountOut])
async def get_partner_accounts(
    partner_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> List[SocialAccountOut]:
    accounts = await list_accounts(db, ctx, partner_id)
    return [SocialAccountOut.model_validate(a) for a in accounts]


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Disconnect: the row is deleted; the token is not revoked at the provider."""
    await disconnect(db, ctx, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
