"""Retail partner directory: CRUD, bulk import, tags, status counts."""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import PARTNER_PENDING, PARTNER_STATUSES
from app.context import RequestContext
from app.errors import NotFoundError, ValidationError
from app.logging_config import get_logger
from app.models import RetailPartner
from app.services.brand_service import get_brand_or_404

logger = get_logger(__name__)

# Fields a partner user may change on its own record.
PARTNER_EDITABLE_FIELDS = ("footer_template", "contact_phone", "contact_email", "address")
BRAND_EDITABLE_FIELDS = (
    "name",
    "status",
    "contact_email",
    "contact_phone",
    "address",
    "footer_template",
    "tags",
)


def _clean_tags(tags: Optional[List[str]]) -> List[str]:
    out: List[str] = []
    for t in tags or []:
        t = (t or "").strip()
        if t and t not in out:
            out.append(t)
    return out


def _check_status(value: str) -> str:
    if value not in PARTNER_STATUSES:
        raise ValidationError(
            "invalid_partner_status",
            f"status must be one of {', '.join(PARTNER_STATUSES)}",
            extra={"status": value},
        )
    return value


async def get_partner_or_404(db: AsyncSession, partner_id: int) -> RetailPartner:
    r = await db.execute(select(RetailPartner).where(RetailPartner.id == partner_id))
    partner = r.scalar_one_or_none()
    if not partner:
        raise NotFoundError("partner_not_found", "Retail partner not found", extra={"partnerId": partner_id})
    return partner


async def get_partner(db: AsyncSession, ctx: RequestContext, partner_id: int) -> RetailPartner:
    """Partner visible to ctx (own brand, or the partner itself)."""
    partner = await get_partner_or_404(db, partner_id)
    ctx.ensure_partner(partner.id, partner.brand_id)
    return partner


async def create_partner(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    name: str,
    contact_email: str,
    contact_phone: Optional[str] = None,
    address: Optional[str] = None,
    footer_template: Optional[str] = None,
    tags: Optional[List[str]] = None,
    status: Optional[str] = None,
) -> RetailPartner:
    """Create a partner for brand_id (status pending unless given). Caller commits."""
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    await get_brand_or_404(db, brand_id)
    partner = RetailPartner(
        brand_id=brand_id,
        name=name.strip(),
        contact_email=contact_email.strip(),
        contact_phone=contact_phone,
        address=address,
        footer_template=footer_template,
        tags=_clean_tags(tags),
        status=_check_status(status) if status else PARTNER_PENDING,
    )
    db.add(partner)
    await db.flush()
    await db.refresh(partner)
    logger.info("partner.created", brand_id=brand_id, partner_id=partner.id)
    return partner


async def list_partners(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    status: Optional[str] = None,
) -> List[RetailPartner]:
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    q = select(RetailPartner).where(RetailPartner.brand_id == brand_id)
    if status:
        q = q.where(RetailPartner.status == _check_status(status))
    r = await db.execute(q.order_by(RetailPartner.id))
    return list(r.scalars().all())


async def update_partner(
    db: AsyncSession,
    ctx: RequestContext,
    partner_id: int,
    fields: Dict[str, Any],
) -> RetailPartner:
    """
    Apply fields to the partner. Brand users and admins may change any editable field;
    a partner user only its own contact details and footer template.
    """
    partner = await get_partner(db, ctx, partner_id)
    allowed = PARTNER_EDITABLE_FIELDS if ctx.is_partner else BRAND_EDITABLE_FIELDS
    updates = {k: v for k, v in fields.items() if k in allowed}
    if not updates:
        raise ValidationError("no_updatable_fields", "No valid fields to update", extra={"allowed": list(allowed)})
    if "status" in updates:
        if updates["status"] is None:
            raise ValidationError("invalid_partner_status", "status cannot be null")
        _check_status(updates["status"])
    for key in ("name", "contact_email"):
        if key in updates and not (updates[key] or "").strip():
            raise ValidationError("field_required", f"{key} cannot be empty", extra={"field": key})
    if "tags" in updates:
        updates["tags"] = _clean_tags(updates["tags"])
    for key, value in updates.items():
        setattr(partner, key, value)
    await db.flush()
    logger.info("partner.updated", partner_id=partner.id, fields=sorted(updates))
    return partner


async def bulk_create_partners(
    db: AsyncSession,
    ctx: RequestContext,
    brand_id: int,
    rows: List[dict],
) -> Tuple[List[RetailPartner], List[Dict[str, Any]]]:
    """
    Create one partner per valid row. Rows missing name or contactEmail are reported as
    {"index", "error"} and skipped; the rest of the batch still goes through.
    """
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    await get_brand_or_404(db, brand_id)
    created: List[RetailPartner] = []
    errors: List[Dict[str, Any]] = []
    for index, row in enumerate(rows):
        name = (row.get("name") or "").strip()
        email = (row.get("contact_email") or "").strip()
        if not name or not email:
            errors.append({"index": index, "error": "Name and contact email are required"})
            continue
        partner = RetailPartner(
            brand_id=brand_id,
            name=name,
            contact_email=email,
            contact_phone=row.get("contact_phone"),
            address=row.get("address"),
            footer_template=row.get("footer_template"),
            tags=_clean_tags(row.get("tags")),
            status=PARTNER_PENDING,
        )
        db.add(partner)
        created.append(partner)
    await db.flush()
    for partner in created:
        await db.refresh(partner)
    logger.info("partner.bulk_created", brand_id=brand_id, created=len(created), failed=len(errors))
    return created, errors


async def list_partner_tags(db: AsyncSession, ctx: RequestContext, brand_id: int) -> List[str]:
    """Sorted unique tags used by the brand's partners."""
    partners = await list_partners(db, ctx, brand_id)
    tags = set()
    for p in partners:
        tags.update(p.tags or [])
    return sorted(tags)


async def partner_status_counts(db: AsyncSession, ctx: RequestContext, brand_id: int) -> Dict[str, int]:
    """Count per status; every known status is present (0 when unused)."""
    ctx.ensure_brand_user()
    ctx.ensure_brand(brand_id)
    r = await db.execute(
        select(RetailPartner.status, func.count(RetailPartner.id))
        .where(RetailPartner.brand_id == brand_id)
        .group_by(RetailPartner.status)
    )
    counts = {s: 0 for s in PARTNER_STATUSES}
    for status, n in r.all():
        counts[status] = n
    return counts
