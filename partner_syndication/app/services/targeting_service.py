"""
Partner targeting: turn a targeting rule (explicit ids or a tag) into partner ids of one brand.
"""
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import PARTNER_ACTIVE
from app.errors import ForbiddenError
from app.logging_config import get_logger
from app.models import RetailPartner

logger = get_logger(__name__)


async def resolve_by_ids(
    db: AsyncSession,
    brand_id: int,
    partner_ids: Sequence[int],
) -> List[int]:
    """
    Return the ids (deduplicated, request order kept) after checking each belongs to brand_id.
    Ids of another brand and unknown ids both raise ForbiddenError; nothing is partially resolved.
    """
    unique_ids = list(dict.fromkeys(partner_ids))
    if not unique_ids:
        return []
    r = await db.execute(
        select(RetailPartner.id).where(
            RetailPartner.id.in_(unique_ids),
            RetailPartner.brand_id == brand_id,
        )
    )
    owned = set(r.scalars().all())
    foreign = [pid for pid in unique_ids if pid not in owned]
    if foreign:
        logger.warning("targeting.partner_not_owned", brand_id=brand_id, partner_ids=foreign)
        raise ForbiddenError(
            "partner_not_owned",
            "One or more partners do not belong to this brand",
            extra={"partnerIds": foreign},
        )
    return unique_ids


async def resolve_by_tag(db: AsyncSession, brand_id: int, tag: str) -> List[int]:
    """Active partners of the brand whose tags contain tag (exact, case-sensitive). Empty list is fine."""
    r = await db.execute(
        select(RetailPartner)
        .where(
            RetailPartner.brand_id == brand_id,
            RetailPartner.status == PARTNER_ACTIVE,
        )
        .order_by(RetailPartner.id)
    )
    # JSON containment differs between Postgres and SQLite; tag lists are short.
    return [p.id for p in r.scalars().all() if tag in (p.tags or [])]
