"""
Partner invites: persisted tokens with a fixed TTL. Email delivery is outside this service;
the caller gets the link to send.
"""
import secrets
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.constants import PARTNER_ACTIVE
from app.context import RequestContext
from app.errors import ConflictError, GoneError, NotFoundError
from app.logging_config import get_logger
from app.models import Brand, Invite, RetailPartner
from app.services.brand_service import get_brand_or_404
from app.utils.datetime_utils import ensure_utc, utcnow

logger = get_logger(__name__)


def invite_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/invite?token={token}"


async def create_invite(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    email: str,
    name: str,
    message: Optional[str] = None,
) -> Invite:
    """New invite valid for INVITE_TTL_DAYS. Caller commits."""
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    await get_brand_or_404(db, brand_id)
    settings = get_settings()
    invite = Invite(
        token=secrets.token_hex(32),
        brand_id=brand_id,
        email=email.strip(),
        name=name.strip(),
        message=message,
        expires_at=utcnow() + timedelta(days=settings.invite_ttl_days),
    )
    db.add(invite)
    await db.flush()
    await db.refresh(invite)
    logger.info("invite.created", brand_id=brand_id)
    return invite


async def _get_open_invite(db: AsyncSession, token: str) -> Invite:
    """Unaccepted, unexpired invite. Expired invites are deleted and committed before GoneError."""
    r = await db.execute(select(Invite).where(Invite.token == token))
    invite = r.scalar_one_or_none()
    if not invite:
        raise NotFoundError("invite_not_found", "Invalid invite token")
    if invite.accepted_at is not None:
        raise ConflictError("invite_already_accepted", "This invite has already been used")
    if ensure_utc(invite.expires_at) < utcnow():
        await db.delete(invite)
        await db.commit()
        logger.info("invite.expired", brand_id=invite.brand_id)
        raise GoneError("invite_expired", "Invite has expired")
    return invite


async def verify_invite(db: AsyncSession, token: str) -> Tuple[Invite, Brand]:
    invite = await _get_open_invite(db, token)
    brand = await get_brand_or_404(db, invite.brand_id)
    return invite, brand


async def list_invites(db: AsyncSession, ctx: RequestContext, brand_id: int) -> List[Invite]:
    """Open (unexpired, unaccepted) invites of the brand, newest first."""
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    r = await db.execute(
        select(Invite)
        .where(
            Invite.brand_id == brand_id,
            Invite.accepted_at.is_(None),
            Invite.expires_at > utcnow(),
        )
        .order_by(Invite.created_at.desc())
    )
    return list(r.scalars().all())


async def cancel_invite(db: AsyncSession, ctx: RequestContext, token: str) -> None:
    ctx.ensure_brand_user()
    r = await db.execute(select(Invite).where(Invite.token == token))
    invite = r.scalar_one_or_none()
    if not invite:
        raise NotFoundError("invite_not_found", "Invite not found")
    ctx.ensure_brand(invite.brand_id)
    await db.execute(delete(Invite).where(Invite.token == token))
    logger.info("invite.cancelled", brand_id=invite.brand_id)


async def accept_invite(
    db: AsyncSession,
    token: str,
    contact_phone: Optional[str] = None,
    address: Optional[str] = None,
    user_id: Optional[int] = None,
) -> RetailPartner:
    """
    Create the invited partner (active) for the inviting brand and mark the invite accepted.
    The token is the credential; no request identity is needed.
    """
    invite = await _get_open_invite(db, token)
    now = utcnow()
    partner = RetailPartner(
        brand_id=invite.brand_id,
        user_id=user_id,
        name=invite.name,
        contact_email=invite.email,
        contact_phone=contact_phone,
        address=address,
        tags=[],
        status=PARTNER_ACTIVE,
    )
    db.add(partner)
    await db.flush()
    invite.accepted_at = now
    invite.partner_id = partner.id
    await db.flush()
    await db.refresh(partner)
    logger.info("invite.accepted", brand_id=invite.brand_id, partner_id=partner.id)
    return partner
