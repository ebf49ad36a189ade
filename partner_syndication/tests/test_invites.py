"""Invite lifecycle: create -> verify -> accept (partner created), expiry (410), cancel, single use."""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.db import async_session_factory
from app.models import Brand, Invite, RetailPartner


def brand_headers(brand_id: int) -> dict:
    return {"X-Role": "brand", "X-Tenant-ID": str(brand_id)}


async def create_invite(client: AsyncClient, brand_id: int, email: str = "new@example.com") -> dict:
    resp = await client.post(
        "/invites",
        json={"email": email, "name": "New Store", "message": "Join us"},
        headers=brand_headers(brand_id),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_verify_accept(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    invite = await create_invite(client, brand.id)
    token = invite["token"]
    assert len(token) == 64
    assert invite["inviteLink"] == f"http://test/invite?token={token}"

    verify = await client.get("/invites/verify", params={"token": token})
    assert verify.status_code == 200, verify.text
    assert verify.json()["brandName"] == "Acme"
    assert verify.json()["email"] == "new@example.com"

    accepted = await client.post(f"/invites/{token}/accept", json={"contactPhone": "555-0101"})
    assert accepted.status_code == 201, accepted.text
    partner = accepted.json()
    assert partner["brandId"] == brand.id
    assert partner["status"] == "active"
    assert partner["contactEmail"] == "new@example.com"
    assert partner["contactPhone"] == "555-0101"

    again = await client.post(f"/invites/{token}/accept", json={})
    assert again.status_code == 409, again.text
    assert again.json()["code"] == "invite_already_accepted"

    listed = await client.get("/invites", headers=brand_headers(brand.id))
    assert listed.json() == [], "accepted invites are no longer open"


@pytest.mark.asyncio
async def test_verify_unknown_token(client: AsyncClient, seed) -> None:
    await seed(Brand(name="Acme"))
    resp = await client.get("/invites/verify", params={"token": "nope"})
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "invite_not_found"


@pytest.mark.asyncio
async def test_expired_invite_is_gone_and_deleted(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    await seed(
        Invite(
            token="expired-token",
            brand_id=brand.id,
            email="late@example.com",
            name="Late Store",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
    )
    resp = await client.get("/invites/verify", params={"token": "expired-token"})
    assert resp.status_code == 410, resp.text
    assert resp.json()["code"] == "invite_expired"

    async with async_session_factory() as session:
        r = await session.execute(select(Invite).where(Invite.token == "expired-token"))
        assert r.scalar_one_or_none() is None

    accept = await client.post("/invites/expired-token/accept", json={})
    assert accept.status_code == 404


@pytest.mark.asyncio
async def test_list_and_cancel(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    other = await seed(Brand(name="Other"))
    first = await create_invite(client, brand.id, "a@example.com")
    await create_invite(client, brand.id, "b@example.com")
    await create_invite(client, other.id, "c@example.com")

    listed = await client.get("/invites", headers=brand_headers(brand.id))
    assert listed.status_code == 200
    assert sorted(i["email"] for i in listed.json()) == ["a@example.com", "b@example.com"]

    foreign = await client.delete(f"/invites/{first['token']}", headers=brand_headers(other.id))
    assert foreign.status_code == 403, foreign.text

    resp = await client.delete(f"/invites/{first['token']}", headers=brand_headers(brand.id))
    assert resp.status_code == 204, resp.text
    listed = await client.get("/invites", headers=brand_headers(brand.id))
    assert [i["email"] for i in listed.json()] == ["b@example.com"]


@pytest.mark.asyncio
async def test_accepted_partner_is_visible_to_brand(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    invite = await create_invite(client, brand.id)
    await client.post(f"/invites/{invite['token']}/accept", json={"address": "1 Main St"})

    async with async_session_factory() as session:
        r = await session.execute(select(RetailPartner).where(RetailPartner.brand_id == brand.id))
        partners = r.scalars().all()
    assert [(p.name, p.address) for p in partners] == [("New Store", "1 Main St")]
