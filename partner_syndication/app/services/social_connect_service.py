"""
Partner social account lifecycle (Facebook Login):
none -> pending (state issued) -> active (tokens stored) -> expired (seen at publish time) -> none (disconnect).

beginConnect persists a single-use state row bound to the partner; completeConnect consumes it,
exchanges code -> short-lived -> long-lived token (the short-lived token is never stored) and
upserts one SocialAccount per page or per linked Instagram business account.
All Graph calls happen before any account row is written.
"""
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.constants import (
    ACCOUNT_ACTIVE,
    CONNECTABLE_PLATFORMS,
    PARTNER_ACTIVE,
    PARTNER_PENDING,
    PLATFORM_INSTAGRAM,
)
from app.context import RequestContext
from app.errors import AuthError, ExternalServiceError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import OAuthState, RetailPartner, SocialAccount
from app.services import facebook_graph
from app.services.partner_service import get_partner, get_partner_or_404
from app.utils.datetime_utils import ensure_utc, utcnow

logger = get_logger(__name__)


def _ensure_facebook_configured() -> None:
    settings = get_settings()
    if not settings.facebook_app_id or not settings.facebook_app_secret:
        raise ExternalServiceError(
            "facebook_not_configured",
            "Facebook is not configured (FACEBOOK_APP_ID, FACEBOOK_APP_SECRET)",
        )


async def begin_connect(
    db: AsyncSession,
    ctx: RequestContext,
    partner_id: int,
    platform: str,
    redirect_uri: str,
) -> str:
    """Persist a pending state for the partner and return the authorization URL. Caller commits."""
    platform = (platform or "").strip().lower()
    if platform not in CONNECTABLE_PLATFORMS:
        raise ValidationError(
            "platform_not_connectable",
            f"Only {', '.join(CONNECTABLE_PLATFORMS)} can be connected",
            extra={"platform": platform},
        )
    partner = await get_partner(db, ctx, partner_id)
    _ensure_facebook_configured()

    settings = get_settings()
    now = utcnow()
    await db.execute(delete(OAuthState).where(OAuthState.expires_at < now))
    state = OAuthState(
        state=secrets.token_urlsafe(32),
        partner_id=partner.id,
        platform=platform,
        redirect_uri=redirect_uri,
        expires_at=now + timedelta(seconds=settings.oauth_state_ttl_seconds),
    )
    db.add(state)
    await db.flush()
    logger.info("social_connect.started", partner_id=partner.id, platform=platform)
    return facebook_graph.build_oauth_url(redirect_uri, state.state)


async def _consume_state(db: AsyncSession, state: Optional[str]) -> OAuthState:
    """Look up and delete the pending state; unknown or expired -> AuthError."""
    if not state:
        raise AuthError("oauth_state_mismatch", "Missing OAuth state")
    r = await db.execute(select(OAuthState).where(OAuthState.state == state))
    pending = r.scalar_one_or_none()
    if not pending:
        logger.warning("social_connect.state_mismatch")
        raise AuthError("oauth_state_mismatch", "OAuth state does not match any pending request")
    await db.delete(pending)
    await db.flush()
    if ensure_utc(pending.expires_at) < utcnow():
        raise AuthError("oauth_state_expired", "OAuth request expired, please try again")
    return pending


async def _collect_accounts(
    platform: str,
    pages: List[Dict[str, Any]],
    user_token: str,
) -> List[Dict[str, str]]:
    """External accounts to link: pages themselves, or the Instagram business accounts behind them."""
    accounts: List[Dict[str, str]] = []
    for page in pages:
        page_token = page.get("access_token") or user_token
        if platform == PLATFORM_INSTAGRAM:
            ig = await facebook_graph.get_instagram_account(str(page["id"]), page_token)
            if not ig:
                continue
            accounts.append(
                {
                    "account_id": str(ig["id"]),
                    "account_name": ig.get("username") or page.get("name") or str(ig["id"]),
                    "access_token": page_token,
                }
            )
        else:
            accounts.append(
                {
                    "account_id": str(page["id"]),
                    "account_name": page.get("name") or str(page["id"]),
                    "access_token": page_token,
                }
            )
    return accounts


async def complete_connect(
    db: AsyncSession,
    code: Optional[str],
    state: Optional[str],
    page_ids: Optional[Sequence[str]] = None,
) -> Tuple[RetailPartner, List[SocialAccount]]:
    """
    Finish the OAuth dance for the partner bound to state.
    AuthError: unknown/expired state, missing code, code rejected by Facebook.
    ExternalServiceError: Graph API unreachable or erroring. Caller commits.
    """
    pending = await _consume_state(db, state)
    if not code:
        raise AuthError("oauth_code_missing", "Authorization code is missing")
    _ensure_facebook_configured()
    partner = await get_partner_or_404(db, pending.partner_id)

    try:
        short_lived = await facebook_graph.exchange_code_for_token(code, pending.redirect_uri)
    except ExternalServiceError as e:
        if e.http_status is not None and 400 <= e.http_status < 500:
            raise AuthError("oauth_code_exchange_failed", e.message) from e
        raise
    if not short_lived.get("access_token"):
        raise AuthError("oauth_code_exchange_failed", "Facebook returned no access token")
    long_lived = await facebook_graph.exchange_for_long_lived_token(short_lived["access_token"])
    user_token = long_lived.get("access_token")
    if not user_token:
        raise ExternalServiceError("facebook_api_error", "Facebook returned no long-lived token")
    token_expiry = None
    if long_lived.get("expires_in"):
        token_expiry = utcnow() + timedelta(seconds=int(long_lived["expires_in"]))

    me = await facebook_graph.get_me(user_token)
    pages = await facebook_graph.list_pages(str(me["id"]), user_token)
    if page_ids:
        wanted = {str(p) for p in page_ids}
        pages = [p for p in pages if str(p.get("id")) in wanted]
    if not pages:
        raise ValidationError("no_pages_found", "No Facebook pages found for this account")
    found = await _collect_accounts(pending.platform, pages, user_token)
    if not found:
        raise ValidationError(
            "no_instagram_accounts",
            "None of the selected pages has a linked Instagram business account",
        )

    r = await db.execute(
        select(SocialAccount).where(
            SocialAccount.partner_id == partner.id,
            SocialAccount.platform == pending.platform,
            SocialAccount.account_id.in_([a["account_id"] for a in found]),
        )
    )
    existing = {a.account_id: a for a in r.scalars().all()}
    accounts: List[SocialAccount] = []
    for linked in found:
        account = existing.get(linked["account_id"])
        if account is None:
            account = SocialAccount(
                partner_id=partner.id,
                platform=pending.platform,
                account_id=linked["account_id"],
            )
            db.add(account)
        account.account_name = linked["account_name"]
        account.access_token = linked["access_token"]
        account.token_expiry = token_expiry
        account.status = ACCOUNT_ACTIVE
        accounts.append(account)

    if partner.status == PARTNER_PENDING:
        partner.status = PARTNER_ACTIVE
    partner.connection_date = utcnow()
    await db.flush()
    for account in accounts:
        await db.refresh(account)
    logger.info(
        "social_connect.completed",
        partner_id=partner.id,
        platform=pending.platform,
        accounts=len(accounts),
    )
    return partner, accounts


async def list_accounts(db: AsyncSession, ctx: RequestContext, partner_id: int) -> List[SocialAccount]:
    partner = await get_partner(db, ctx, partner_id)
    r = await db.execute(
        select(SocialAccount)
        .where(SocialAccount.partner_id == partner.id)
        .order_by(SocialAccount.id)
    )
    return list(r.scalars().all())


async def disconnect(db: AsyncSession, ctx: RequestContext, account_id: int) -> None:
    """Delete the account row. The token is not revoked at Facebook."""
    r = await db.execute(select(SocialAccount).where(SocialAccount.id == account_id))
    account = r.scalar_one_or_none()
    if not account:
        raise NotFoundError("social_account_not_found", "Social account not found", extra={"accountId": account_id})
    partner = await get_partner_or_404(db, account.partner_id)
    ctx.ensure_partner(partner.id, partner.brand_id)
    await db.delete(account)
    await db.flush()
    logger.info("social_connect.disconnected", partner_id=partner.id, platform=account.platform)
