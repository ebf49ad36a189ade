"""Content posts: evergreen/date invariant, filters, one-off scheduling, reschedule, calendar, delete."""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.db import async_session_factory
from app.models import Brand, PostAssignment, RetailPartner


def brand_headers(brand_id: int) -> dict:
    return {"X-Role": "brand", "X-Tenant-ID": str(brand_id), "X-User-ID": "42"}


def new_post(**overrides) -> dict:
    body = {"title": "Weekend brunch", "description": "Brunch all weekend.", "platforms": ["facebook"]}
    body.update(overrides)
    return body


async def create(client: AsyncClient, brand_id: int, **overrides) -> dict:
    resp = await client.post("/content-posts", json=new_post(**overrides), headers=brand_headers(brand_id))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_evergreen_post_cannot_carry_date(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    resp = await client.post(
        "/content-posts",
        json=new_post(isEvergreen=True, scheduledDate="2026-11-03T09:30:00Z"),
        headers=brand_headers(brand.id),
    )
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "evergreen_post_cannot_be_dated"

    post = await create(client, brand.id, scheduledDate="2026-11-03T09:30:00Z")
    patched = await client.patch(
        f"/content-posts/{post['id']}",
        json={"isEvergreen": True},
        headers=brand_headers(brand.id),
    )
    assert patched.status_code == 400, patched.text
    assert patched.json()["code"] == "evergreen_post_cannot_be_dated"

    cleared = await client.patch(
        f"/content-posts/{post['id']}",
        json={"isEvergreen": True, "scheduledDate": None},
        headers=brand_headers(brand.id),
    )
    assert cleared.status_code == 200, cleared.text
    assert cleared.json()["isEvergreen"] is True
    assert cleared.json()["scheduledDate"] is None


@pytest.mark.asyncio
async def test_create_defaults_and_platform_validation(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    draft = await create(client, brand.id, tags=["food"], category="brunch")
    assert draft["status"] == "draft"
    assert draft["creatorId"] == 42
    assert draft["tags"] == ["food"]
    assert draft["category"] == "brunch"

    dated = await create(client, brand.id, scheduledDate="2026-11-03T09:30:00Z")
    assert dated["status"] == "scheduled"

    empty = await client.post("/content-posts", json=new_post(platforms=[]), headers=brand_headers(brand.id))
    assert empty.status_code == 400
    assert empty.json()["code"] == "no_platforms_selected"


@pytest.mark.asyncio
async def test_list_filters_evergreen(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    other = await seed(Brand(name="Other"))
    await create(client, brand.id, title="Regular")
    await create(client, brand.id, title="Evergreen", isEvergreen=True)
    await create(client, other.id, title="Someone else's")

    everything = await client.get("/content-posts", headers=brand_headers(brand.id))
    assert sorted(p["title"] for p in everything.json()) == ["Evergreen", "Regular"]

    only_evergreen = await client.get("/content-posts", params={"evergreen": "true"}, headers=brand_headers(brand.id))
    assert [p["title"] for p in only_evergreen.json()] == ["Evergreen"]

    not_evergreen = await client.get("/content-posts", params={"evergreen": "false"}, headers=brand_headers(brand.id))
    assert [p["title"] for p in not_evergreen.json()] == ["Regular"]


@pytest.mark.asyncio
async def test_cross_brand_access_forbidden(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    other = await seed(Brand(name="Other"))
    post = await create(client, brand.id)
    resp = await client.get(f"/content-posts/{post['id']}", headers=brand_headers(other.id))
    assert resp.status_code == 403, resp.text
    missing = await client.get("/content-posts/9999", headers=brand_headers(brand.id))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_schedule_one_off_and_calendar(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    p1, p2 = await seed(
        RetailPartner(brand_id=brand.id, name="P1", contact_email="p1@example.com", tags=[], status="active"),
        RetailPartner(brand_id=brand.id, name="P2", contact_email="p2@example.com", tags=[], status="active"),
    )
    post = await create(client, brand.id)
    scheduled = await client.post(
        f"/content-posts/{post['id']}/schedule",
        json={"scheduledDate": "2026-11-05T12:00:00Z", "partnerIds": [p1.id, p2.id], "customFooter": "Hi"},
        headers=brand_headers(brand.id),
    )
    assert scheduled.status_code == 200, scheduled.text
    data = scheduled.json()
    assert data["post"]["status"] == "scheduled"
    assert len(data["assignmentIds"]) == 2

    evergreen = await create(client, brand.id, title="Evergreen", isEvergreen=True)
    rejected = await client.post(
        f"/content-posts/{evergreen['id']}/schedule",
        json={"scheduledDate": "2026-11-05T12:00:00Z", "partnerIds": [p1.id]},
        headers=brand_headers(brand.id),
    )
    assert rejected.status_code == 400
    assert rejected.json()["code"] == "evergreen_post_not_schedulable"

    batch = await client.post(
        "/content-posts/evergreen-schedule",
        json={"scheduledDate": "2026-11-06T08:00:00Z", "platforms": ["facebook"], "partnerIds": [p1.id]},
        headers=brand_headers(brand.id),
    )
    assert batch.status_code == 200, batch.text

    cal = await client.get(
        "/content-posts/calendar",
        params={"start": "2026-11-01T00:00:00Z", "end": "2026-11-30T23:59:59Z"},
        headers=brand_headers(brand.id),
    )
    assert cal.status_code == 200, cal.text
    entries = cal.json()["entries"]
    assert [(e["postId"], e["isEvergreen"]) for e in entries] == [(post["id"], False), (evergreen["id"], True)]
    assert sorted(entries[0]["partnerIds"]) == sorted([p1.id, p2.id])
    assert entries[1]["partnerIds"] == [p1.id]
    assert entries[1]["batchId"] == batch.json()["batchId"]

    outside = await client.get(
        "/content-posts/calendar",
        params={"start": "2026-12-01T00:00:00Z", "end": "2026-12-31T00:00:00Z"},
        headers=brand_headers(brand.id),
    )
    assert outside.json()["entries"] == []


@pytest.mark.asyncio
async def test_reschedule(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    post = await create(client, brand.id, scheduledDate="2026-11-03T09:30:00Z")
    resp = await client.post(
        f"/content-posts/{post['id']}/reschedule",
        json={"scheduledDate": "2026-11-10T10:00:00Z"},
        headers=brand_headers(brand.id),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["scheduledDate"].startswith("2026-11-10T10:00:00")

    evergreen = await create(client, brand.id, isEvergreen=True)
    bad = await client.post(
        f"/content-posts/{evergreen['id']}/reschedule",
        json={"scheduledDate": "2026-11-10T10:00:00Z"},
        headers=brand_headers(brand.id),
    )
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_delete_removes_assignments(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    p1 = await seed(RetailPartner(brand_id=brand.id, name="P1", contact_email="p1@example.com", tags=[]))
    post = await create(client, brand.id)
    await client.post(
        f"/content-posts/{post['id']}/schedule",
        json={"scheduledDate": "2026-11-05T12:00:00Z", "partnerIds": [p1.id]},
        headers=brand_headers(brand.id),
    )
    resp = await client.delete(f"/content-posts/{post['id']}", headers=brand_headers(brand.id))
    assert resp.status_code == 204, resp.text
    assert (await client.get(f"/content-posts/{post['id']}", headers=brand_headers(brand.id))).status_code == 404
    async with async_session_factory() as session:
        r = await session.execute(select(func.count(PostAssignment.id)))
        assert r.scalar_one() == 0
