"""
Evergreen distribution: assign evergreen posts of a brand to partners for one date.

- Pool: the brand's evergreen posts sharing at least one platform with the request.
- Partners are taken in ascending id order; the pool is drawn as a shuffled deck, reshuffled
  whenever it runs out. Every post is used floor(N/|pool|) or ceil(N/|pool|) times, and no
  two partners share a post while the pool suffices.
- Within a deck a partner is handed a post it has not received in earlier batches when one is left.
- The whole batch is flushed in the request transaction: either every assignment is created or none.
- Not idempotent: two identical calls create two batches (distinct batch_id).
"""
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import AbstractSet, Callable, Dict, Hashable, List, Optional, Sequence, Set, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import ASSIGNMENT_PENDING
from app.context import RequestContext
from app.errors import NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import ContentPost, PostAssignment
from app.services.brand_service import get_brand_or_404
from app.services.content_service import validate_platforms
from app.services.targeting_service import resolve_by_ids
from app.utils.datetime_utils import ensure_utc

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class EvergreenBatch:
    """Result of one scheduling action."""

    batch_id: str
    scheduled_at: datetime
    assignments: List[PostAssignment] = field(default_factory=list)

    @property
    def scheduled(self) -> int:
        return len(self.assignments)

    @property
    def posts_used(self) -> int:
        return len({a.post_id for a in self.assignments})


def _parse_time(s: str) -> time:
    """Parse "HH:MM" (seconds, if any, are ignored)."""
    parts = s.strip().split(":")
    try:
        h = int(parts[0])
        m = int(parts[1]) if len(parts) > 1 else 0
        return time(h, m)
    except (ValueError, IndexError):
        raise ValidationError("invalid_scheduled_time", "scheduledTime must be HH:MM", extra={"value": s})


def combine_date_and_time(scheduled_date: datetime, scheduled_time: Optional[str] = None) -> datetime:
    """
    Year/month/day from scheduled_date, hour/minute from scheduled_time (or from scheduled_date
    when no time is given); seconds zeroed. Result in UTC.
    """
    if scheduled_time:
        t = _parse_time(scheduled_time)
        combined = scheduled_date.replace(hour=t.hour, minute=t.minute, second=0, microsecond=0)
    else:
        combined = scheduled_date.replace(second=0, microsecond=0)
    return ensure_utc(combined)


def select_evergreen_posts(
    pool: Sequence[T],
    count: int,
    rng: Optional[random.Random] = None,
    avoid: Optional[Sequence[AbstractSet[Hashable]]] = None,
    key: Optional[Callable[[T], Hashable]] = None,
) -> List[T]:
    """
    Draw count items from pool: a random permutation, reshuffled each time it is exhausted.
    Distinct items while count <= len(pool); beyond that each item appears floor or ceil of count/len(pool).
    avoid[i] holds keys the i-th pick should skip when the current deck still has something else;
    it only reorders picks within a deck, so the two guarantees above hold either way.
    """
    if count <= 0:
        return []
    if not pool:
        raise ValueError("pool must not be empty")
    rng = rng or random.Random()
    key = key or (lambda item: item)
    picks: List[T] = []
    deck: List[T] = []
    while len(picks) < count:
        if not deck:
            deck = list(pool)
            rng.shuffle(deck)
        skip = avoid[len(picks)] if avoid else None
        index = len(deck) - 1
        if skip:
            for j in range(len(deck) - 1, -1, -1):
                if key(deck[j]) not in skip:
                    index = j
                    break
        picks.append(deck.pop(index))
    return picks


async def load_partner_history(
    db: AsyncSession,
    partner_ids: Sequence[int],
    post_ids: Sequence[int],
) -> Dict[int, Set[int]]:
    """partner id -> ids of the given posts already assigned to that partner in earlier batches."""
    if not partner_ids or not post_ids:
        return {}
    r = await db.execute(
        select(PostAssignment.partner_id, PostAssignment.post_id).where(
            PostAssignment.partner_id.in_(partner_ids),
            PostAssignment.post_id.in_(post_ids),
        )
    )
    history: Dict[int, Set[int]] = {}
    for partner_id, post_id in r.all():
        history.setdefault(partner_id, set()).add(post_id)
    return history



async def load_evergreen_pool(
    db: AsyncSession,
    brand_id: int,
    platforms: Sequence[str],
) -> List[ContentPost]:
    """Evergreen posts of the brand supporting at least one of platforms (any overlap), by id."""
    r = await db.execute(
        select(ContentPost)
        .where(
            ContentPost.brand_id == brand_id,
            ContentPost.is_evergreen.is_(True),
        )
        .order_by(ContentPost.id)
    )
    wanted = set(platforms)
    return [p for p in r.scalars().all() if wanted.intersection(p.platforms or [])]


async def schedule_evergreen(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    scheduled_date: datetime,
    platforms: Sequence[str],
    partner_ids: Sequence[int],
    scheduled_time: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> EvergreenBatch:
    """
    Create one pending assignment per partner for scheduled_date.
    ValidationError: no platforms / unknown platform / no partners / bad time.
    ForbiddenError: a partner outside brand_id. NotFoundError: unknown brand or empty pool.
    Caller commits.
    """
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    requested = validate_platforms(platforms)
    if not partner_ids:
        raise ValidationError("no_partners_selected", "Select at least one partner")
    when = combine_date_and_time(scheduled_date, scheduled_time)

    await get_brand_or_404(db, brand_id)
    targets = sorted(await resolve_by_ids(db, brand_id, partner_ids))
    pool = await load_evergreen_pool(db, brand_id, requested)
    if not pool:
        raise NotFoundError(
            "no_evergreen_posts",
            "No evergreen posts found for the selected platforms",
            extra={"platforms": requested},
        )

    history = await load_partner_history(db, targets, [p.id for p in pool])
    picks = select_evergreen_posts(
        pool,
        len(targets),
        rng,
        avoid=[history.get(partner_id, set()) for partner_id in targets],
        key=lambda post: post.id,
    )
    batch = EvergreenBatch(batch_id=uuid.uuid4().hex, scheduled_at=when)
    batch.assignments = [
        PostAssignment(
            post_id=post.id,
            partner_id=partner_id,
            batch_id=batch.batch_id,
            scheduled_at=when,
            platforms=list(requested),
            status=ASSIGNMENT_PENDING,
        )
        for partner_id, post in zip(targets, picks)
    ]
    db.add_all(batch.assignments)
    await db.flush()
    logger.info(
        "evergreen.scheduled",
        brand_id=brand_id,
        batch_id=batch.batch_id,
        scheduled=batch.scheduled,
        posts_used=batch.posts_used,
        pool_size=len(pool),
    )
    return batch
