"""
Post assignments: a partner's feed and publishing one assignment through the partner's social account.
- Token lifecycle is checked before any Graph call: past token_expiry the account is stored as expired
  and the call fails with AuthError (nothing sweeps expiry in the background).
- Graph failure: assignment marked failed with the error, committed, then ExternalServiceError.
"""
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import (
    ACCOUNT_ACTIVE,
    ACCOUNT_EXPIRED,
    ASSIGNMENT_FAILED,
    ASSIGNMENT_PUBLISHED,
    PLATFORM_FACEBOOK,
    PLATFORM_GOOGLE,
    PLATFORM_INSTAGRAM,
    POST_PUBLISHED,
    POST_SCHEDULED,
    SUPPORTED_PLATFORMS,
)
from app.context import RequestContext
from app.errors import AuthError, ExternalServiceError, NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import ContentPost, PostAssignment, RetailPartner, SocialAccount
from app.services import facebook_graph
from app.services.content_service import get_post_or_404
from app.services.partner_service import get_partner, get_partner_or_404
from app.utils.datetime_utils import ensure_utc, utcnow

logger = get_logger(__name__)


async def list_assignments(
    db: AsyncSession,
    ctx: RequestContext,
    partner_id: int,
    status: Optional[str] = None,
) -> List[PostAssignment]:
    """Assignments of one partner, soonest first (undated last)."""
    partner = await get_partner(db, ctx, partner_id)
    q = select(PostAssignment).where(PostAssignment.partner_id == partner.id)
    if status:
        q = q.where(PostAssignment.status == status)
    r = await db.execute(
        q.order_by(PostAssignment.scheduled_at.is_(None), PostAssignment.scheduled_at, PostAssignment.id)
    )
    return list(r.scalars().all())


def build_message(post: ContentPost, assignment: PostAssignment, partner: RetailPartner) -> str:
    """Post description, then the footer (assignment override, else partner template), then custom tags."""
    parts = [(post.description or "").strip() or post.title]
    footer = assignment.custom_footer or partner.footer_template
    if footer and footer.strip():
        parts.append(footer.strip())
    if assignment.custom_tags and assignment.custom_tags.strip():
        parts.append(assignment.custom_tags.strip())
    return "\n\n".join(parts)


async def _get_publishing_account(db: AsyncSession, partner_id: int, platform: str) -> SocialAccount:
    r = await db.execute(
        select(SocialAccount)
        .where(
            SocialAccount.partner_id == partner_id,
            SocialAccount.platform == platform,
            SocialAccount.status.in_((ACCOUNT_ACTIVE, ACCOUNT_EXPIRED)),
        )
        .order_by(SocialAccount.id)
    )
    accounts = list(r.scalars().all())
    active = [a for a in accounts if a.status == ACCOUNT_ACTIVE]
    if active:
        return active[0]
    if accounts:
        return accounts[0]
    raise NotFoundError(
        "social_account_not_found",
        f"Partner has no connected {platform} account",
        extra={"partnerId": partner_id, "platform": platform},
    )


async def _check_token_lifecycle(db: AsyncSession, account: SocialAccount) -> None:
    """Fail fast on an expired token; the expired status is committed before raising."""
    expiry = ensure_utc(account.token_expiry)
    if account.status == ACCOUNT_ACTIVE and expiry is not None and utcnow() > expiry:
        account.status = ACCOUNT_EXPIRED
        await db.commit()
        logger.info("publish.token_expired", account_id=account.id, partner_id=account.partner_id)
    if account.status == ACCOUNT_EXPIRED:
        raise AuthError(
            "social_account_token_expired",
            "The connected account's token has expired, please reconnect",
            extra={"accountId": account.id, "platform": account.platform},
        )


async def publish_assignment(
    db: AsyncSession,
    ctx: RequestContext,
    assignment_id: int,
    platform: str,
) -> Tuple[PostAssignment, str]:
    """Publish the assignment's post on platform. Returns (assignment, external post id)."""
    platform = (platform or "").strip().lower()
    if platform == PLATFORM_GOOGLE:
        raise ValidationError("platform_not_publishable", "Publishing to Google Business is not supported")
    if platform not in SUPPORTED_PLATFORMS:
        raise ValidationError("unsupported_platform", f"Unsupported platform: {platform}")

    r = await db.execute(select(PostAssignment).where(PostAssignment.id == assignment_id))
    assignment = r.scalar_one_or_none()
    if not assignment:
        raise NotFoundError("assignment_not_found", "Assignment not found", extra={"assignmentId": assignment_id})
    partner = await get_partner_or_404(db, assignment.partner_id)
    ctx.ensure_partner(partner.id, partner.brand_id)
    if assignment.platforms and platform not in assignment.platforms:
        raise ValidationError(
            "platform_not_assigned",
            f"Assignment does not target {platform}",
            extra={"platforms": list(assignment.platforms)},
        )
    post = await get_post_or_404(db, assignment.post_id)
    if platform == PLATFORM_INSTAGRAM and not post.image_url:
        raise ValidationError("instagram_requires_image", "Instagram posts need an image")

    account = await _get_publishing_account(db, partner.id, platform)
    await _check_token_lifecycle(db, account)

    message = build_message(post, assignment, partner)
    try:
        if platform == PLATFORM_FACEBOOK:
            external_id = await facebook_graph.publish_page_post(
                account.account_id,
                account.access_token,
                message,
                image_url=post.image_url,
                video_url=post.video_url,
            )
            published_url = f"https://www.facebook.com/{external_id}"
        else:
            external_id = await facebook_graph.publish_instagram_media(
                account.account_id,
                account.access_token,
                message,
                post.image_url,
            )
            published_url = None
    except ExternalServiceError as e:
        assignment.status = ASSIGNMENT_FAILED
        assignment.error_message = e.message
        await db.commit()
        logger.warning(
            "publish.failed",
            assignment_id=assignment.id,
            partner_id=partner.id,
            platform=platform,
            error=e.message,
        )
        raise

    now = utcnow()
    assignment.status = ASSIGNMENT_PUBLISHED
    assignment.published_url = published_url
    assignment.published_date = now
    assignment.error_message = None
    if not post.is_evergreen and post.status == POST_SCHEDULED:
        post.status = POST_PUBLISHED
        post.published_date = now
    await db.flush()
    logger.info(
        "publish.succeeded",
        assignment_id=assignment.id,
        partner_id=partner.id,
        platform=platform,
        external_id=external_id,
    )
    return assignment, external_id
