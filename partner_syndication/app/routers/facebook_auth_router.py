"""Facebook Login for partners: authorization URL and OAuth callback."""
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.constants import PLATFORM_FACEBOOK
from app.context import RequestContext, get_request_context
from app.db import get_db
from app.errors import DomainError
from app.logging_config import get_logger
from app.schemas.social import OAuthUrlResponse
from app.services.social_connect_service import begin_connect, complete_connect

router = APIRouter(prefix="/facebook-auth", tags=["facebook-auth"])
logger = get_logger(__name__)


def _redirect(base: str, **params: object) -> RedirectResponse:
    return RedirectResponse(f"{base}?{urlencode(params)}", status_code=302)


@router.get("/oauth-url/{partner_id}", response_model=OAuthUrlResponse)
async def get_oauth_url(
    partner_id: int,
    request: Request,
    platform: str = Query(PLATFORM_FACEBOOK, description="facebook | instagram"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
) -> OAuthUrlResponse:
    """Authorization URL for the partner; the embedded state is bound to partner_id server-side."""
    settings = get_settings()
    redirect_uri = settings.facebook_oauth_redirect_uri or str(request.url_for("facebook_oauth_callback"))
    url = await begin_connect(db, ctx, partner_id, platform, redirect_uri)
    return OAuthUrlResponse(url=url)


@router.get("/callback", name="facebook_oauth_callback")
async def facebook_oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    page_ids: Optional[str] = Query(None, alias="pageIds", description="Comma separated page ids to link"),
    db: AsyncSession = Depends(get_db),
) -> RedirectResponse:
    """
    Redirect target of the Facebook dialog. Always answers with a redirect:
    success page with ?pid=, or error page with ?message=<code>.
    """
    settings = get_settings()
    if error:
        logger.info("social_connect.denied", error=error)
        return _redirect(settings.oauth_error_redirect, message="oauth_denied")
    selected = [p.strip() for p in page_ids.split(",") if p.strip()] if page_ids else None
    try:
        partner, _accounts = await complete_connect(db, code, state, page_ids=selected)
    except DomainError as e:
        # The consumed state is still committed so it cannot be replayed.
        logger.warning("social_connect.failed", code=e.code, error=e.message)
        return _redirect(settings.oauth_error_redirect, message=e.code)
    return _redirect(settings.oauth_success_redirect, pid=partner.id)
