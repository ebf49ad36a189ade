"""Gateway identity headers -> RequestContext; DomainError -> {"detail", "code", "extra"}."""
import pytest
from httpx import AsyncClient

from app.context import RequestContext
from app.errors import ForbiddenError, ValidationError
from app.models import Brand


@pytest.mark.asyncio
async def test_missing_role_is_unauthenticated(client: AsyncClient) -> None:
    resp = await client.get("/content-posts")
    assert resp.status_code == 401, resp.text
    assert resp.json() == {"detail": "Please log in to continue", "code": "unauthenticated", "extra": None}


@pytest.mark.asyncio
async def test_brand_role_needs_tenant(client: AsyncClient) -> None:
    resp = await client.get("/content-posts", headers={"X-Role": "brand"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "tenant_missing"


@pytest.mark.asyncio
async def test_partner_role_needs_partner_id(client: AsyncClient) -> None:
    resp = await client.get("/retail-partners/1", headers={"X-Role": "partner", "X-Tenant-ID": "1"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "partner_missing"


@pytest.mark.asyncio
async def test_non_numeric_tenant(client: AsyncClient) -> None:
    resp = await client.get("/content-posts", headers={"X-Role": "brand", "X-Tenant-ID": "acme"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_identity_header"


@pytest.mark.asyncio
async def test_correlation_id_echoed(client: AsyncClient) -> None:
    resp = await client.get("/health", headers={"X-Correlation-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Correlation-ID"] == "req-123"
    generated = await client.get("/health")
    assert generated.headers["X-Correlation-ID"]


@pytest.mark.asyncio
async def test_only_admin_creates_brands(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    denied = await client.post("/brands", json={"name": "New"}, headers={"X-Role": "brand", "X-Tenant-ID": str(brand.id)})
    assert denied.status_code == 403
    created = await client.post("/brands", json={"name": "New", "primaryColor": "#ff0000"}, headers={"X-Role": "admin"})
    assert created.status_code == 201, created.text
    assert created.json()["primaryColor"] == "#ff0000"
    fetched = await client.get(f"/brands/{created.json()['id']}", headers={"X-Role": "admin"})
    assert fetched.json()["name"] == "New"


def test_resolve_brand_id() -> None:
    admin = RequestContext(role="admin")
    assert admin.resolve_brand_id(5) == 5
    with pytest.raises(ValidationError):
        admin.resolve_brand_id()

    brand = RequestContext(role="brand", brand_id=3)
    assert brand.resolve_brand_id() == 3
    assert brand.resolve_brand_id(3) == 3
    with pytest.raises(ForbiddenError):
        brand.resolve_brand_id(4)


def test_ensure_partner() -> None:
    partner = RequestContext(role="partner", brand_id=3, partner_id=10)
    partner.ensure_partner(10, 3)
    with pytest.raises(ForbiddenError):
        partner.ensure_partner(11, 3)
    RequestContext(role="brand", brand_id=3).ensure_partner(11, 3)
    with pytest.raises(ForbiddenError):
        RequestContext(role="brand", brand_id=4).ensure_partner(11, 3)
