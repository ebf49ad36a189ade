"""
RequestContext: who is calling (role, tenant, effective user), built from gateway headers.
Passed explicitly into services; nothing below the routers reads headers or sessions.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from app.constants import ROLE_ADMIN, ROLE_BRAND, ROLE_PARTNER, ROLES
from app.errors import AuthError, ForbiddenError, ValidationError


@dataclass(frozen=True)
class RequestContext:
    role: str
    brand_id: Optional[int] = None
    user_id: Optional[int] = None
    partner_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_partner(self) -> bool:
        return self.role == ROLE_PARTNER

    def resolve_brand_id(self, requested: Optional[int] = None) -> int:
        """
        Brand the operation acts on. Admins must name one; brand/partner users get their own,
        and naming someone else's brand is a ForbiddenError.
        """
        if self.is_admin:
            if requested is None:
                raise ValidationError("brand_id_required", "brandId is required for admin requests")
            return requested
        if requested is not None and requested != self.brand_id:
            raise ForbiddenError("brand_not_owned", "You don't have access to this brand")
        return self.brand_id  # type: ignore[return-value]

    def ensure_brand(self, brand_id: int) -> None:
        """Raise ForbiddenError unless the caller may act on brand_id."""
        if self.is_admin:
            return
        if self.brand_id != brand_id:
            raise ForbiddenError("brand_not_owned", "You don't have access to this brand")

    def ensure_brand_user(self) -> None:
        if self.role not in (ROLE_ADMIN, ROLE_BRAND):
            raise ForbiddenError("brand_or_admin_required", "Brand or admin access required")

    def ensure_partner(self, partner_id: int, partner_brand_id: int) -> None:
        """Brand owners and admins reach every partner of the brand; partners only themselves."""
        if self.is_partner:
            if self.partner_id != partner_id:
                raise ForbiddenError("partner_not_owned", "You don't have access to this partner")
            return
        self.ensure_brand(partner_brand_id)


def _parse_int_header(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise AuthError("invalid_identity_header", f"{name} must be an integer")


async def get_request_context(
    x_role: Optional[str] = Header(None, alias="X-Role"),
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-ID"),
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_partner_id: Optional[str] = Header(None, alias="X-Partner-ID"),
) -> RequestContext:
    """FastAPI dependency: identity forwarded by the auth gateway."""
    role = (x_role or "").strip().lower()
    if role not in ROLES:
        raise AuthError("unauthenticated", "Please log in to continue")
    brand_id = _parse_int_header("X-Tenant-ID", x_tenant_id)
    partner_id = _parse_int_header("X-Partner-ID", x_partner_id)
    if role in (ROLE_BRAND, ROLE_PARTNER) and brand_id is None:
        raise AuthError("tenant_missing", "X-Tenant-ID is required")
    if role == ROLE_PARTNER and partner_id is None:
        raise AuthError("partner_missing", "X-Partner-ID is required for partner users")
    return RequestContext(
        role=role,
        brand_id=brand_id,
        user_id=_parse_int_header("X-User-ID", x_user_id),
        partner_id=partner_id,
    )
