"""
Facebook Login lifecycle: oauth-url issues a single-use state bound to the partner; the callback
rejects unknown states without touching accounts, exchanges tokens twice and upserts one account per page.
Graph API calls are mocked.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.config import get_settings
from app.db import async_session_factory
from app.errors import ExternalServiceError
from app.models import Brand, OAuthState, RetailPartner, SocialAccount

GRAPH = "app.services.facebook_graph"


def brand_headers(brand_id: int) -> dict:
    return {"X-Role": "brand", "X-Tenant-ID": str(brand_id)}


def partner_headers(brand_id: int, partner_id: int) -> dict:
    return {"X-Role": "partner", "X-Tenant-ID": str(brand_id), "X-Partner-ID": str(partner_id)}


async def make_partner(seed, status: str = "pending"):
    brand = await seed(Brand(name="Acme"))
    p = await seed(
        RetailPartner(brand_id=brand.id, name="Corner Store", contact_email="corner@example.com", tags=[], status=status)
    )
    return brand, p


async def issue_state(client: AsyncClient, brand_id: int, partner_id: int, platform: str = "facebook") -> str:
    resp = await client.get(
        f"/facebook-auth/oauth-url/{partner_id}",
        params={"platform": platform},
        headers=brand_headers(brand_id),
    )
    assert resp.status_code == 200, resp.text
    query = parse_qs(urlparse(resp.json()["url"]).query)
    return query["state"][0]


async def account_count() -> int:
    async with async_session_factory() as session:
        r = await session.execute(select(func.count(SocialAccount.id)))
        return r.scalar_one()


def graph_mocks(pages=None, instagram=None):
    """Patch every Graph call used by the callback; returns the started patchers' mocks."""
    pages = pages if pages is not None else [
        {"id": "page-1", "name": "Corner Store Page", "access_token": "page-token-1"},
        {"id": "page-2", "name": "Corner Store Events", "access_token": "page-token-2"},
    ]
    return {
        "exchange_code_for_token": AsyncMock(return_value={"access_token": "short-token", "expires_in": 3600}),
        "exchange_for_long_lived_token": AsyncMock(
            return_value={"access_token": "long-token", "expires_in": 60 * 24 * 3600}
        ),
        "get_me": AsyncMock(return_value={"id": "fb-user-1", "name": "Owner"}),
        "list_pages": AsyncMock(return_value=pages),
        "get_instagram_account": AsyncMock(side_effect=instagram or (lambda page_id, token: None)),
    }


@pytest.mark.asyncio
async def test_oauth_url_contains_state_bound_to_partner(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    resp = await client.get(f"/facebook-auth/oauth-url/{p.id}", headers=brand_headers(brand.id))
    assert resp.status_code == 200, resp.text
    url = urlparse(resp.json()["url"])
    query = parse_qs(url.query)
    assert url.netloc == "www.facebook.com"
    assert url.path.endswith("/dialog/oauth")
    assert query["client_id"] == ["test-app-id"]
    assert query["redirect_uri"][0].endswith("/facebook-auth/callback")
    assert "pages_manage_posts" in query["scope"][0]

    async with async_session_factory() as session:
        r = await session.execute(select(OAuthState).where(OAuthState.state == query["state"][0]))
        state = r.scalar_one()
    assert state.partner_id == p.id
    assert state.platform == "facebook"


@pytest.mark.asyncio
async def test_oauth_url_unknown_partner(client: AsyncClient, seed) -> None:
    brand = await seed(Brand(name="Acme"))
    resp = await client.get("/facebook-auth/oauth-url/999", headers=brand_headers(brand.id))
    assert resp.status_code == 404, resp.text
    assert resp.json()["code"] == "partner_not_found"


@pytest.mark.asyncio
async def test_oauth_url_for_other_partner_forbidden(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    other = await seed(RetailPartner(brand_id=brand.id, name="Other", contact_email="o@example.com", tags=[]))
    resp = await client.get(f"/facebook-auth/oauth-url/{other.id}", headers=partner_headers(brand.id, p.id))
    assert resp.status_code == 403, resp.text
    assert resp.json()["code"] == "partner_not_owned"


@pytest.mark.asyncio
async def test_oauth_url_rejects_google(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    resp = await client.get(
        f"/facebook-auth/oauth-url/{p.id}",
        params={"platform": "google"},
        headers=brand_headers(brand.id),
    )
    assert resp.status_code == 400, resp.text
    assert resp.json()["code"] == "platform_not_connectable"


@pytest.mark.asyncio
async def test_oauth_url_without_facebook_credentials(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    unconfigured = get_settings().model_copy(update={"facebook_app_id": None})
    with patch("app.services.social_connect_service.get_settings", return_value=unconfigured):
        resp = await client.get(f"/facebook-auth/oauth-url/{p.id}", headers=brand_headers(brand.id))
    assert resp.status_code == 503, resp.text
    assert resp.json()["code"] == "facebook_not_configured"


@pytest.mark.asyncio
async def test_callback_with_unissued_state_creates_nothing(client: AsyncClient, seed) -> None:
    await make_partner(seed)
    mocks = graph_mocks()
    with patch.multiple(GRAPH, **mocks):
        resp = await client.get(
            "/facebook-auth/callback",
            params={"code": "abc", "state": "never-issued"},
            follow_redirects=False,
        )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/facebook-error?message=oauth_state_mismatch"
    mocks["exchange_code_for_token"].assert_not_called()
    assert await account_count() == 0


@pytest.mark.asyncio
async def test_callback_with_expired_state_creates_nothing(client: AsyncClient, seed) -> None:
    _brand, p = await make_partner(seed)
    await seed(
        OAuthState(
            state="stale-state",
            partner_id=p.id,
            platform="facebook",
            redirect_uri="http://test/facebook-auth/callback",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
    )
    mocks = graph_mocks()
    with patch.multiple(GRAPH, **mocks):
        resp = await client.get(
            "/facebook-auth/callback",
            params={"code": "abc", "state": "stale-state"},
            follow_redirects=False,
        )
    assert resp.status_code == 302
    assert resp.headers["location"] == "/facebook-error?message=oauth_state_expired"
    mocks["exchange_code_for_token"].assert_not_awaited()
    assert await account_count() == 0

    async with async_session_factory() as session:
        r = await session.execute(select(OAuthState).where(OAuthState.state == "stale-state"))
        assert r.scalar_one_or_none() is None, "an expired state is consumed on use"


@pytest.mark.asyncio
async def test_callback_links_every_page_and_activates_partner(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    state = await issue_state(client, brand.id, p.id)
    mocks = graph_mocks()
    with patch.multiple(GRAPH, **mocks):
        resp = await client.get(
            "/facebook-auth/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )
    assert resp.status_code == 302, resp.text
    assert resp.headers["location"] == f"/partner-connect-success?pid={p.id}"
    mocks["exchange_for_long_lived_token"].assert_awaited_once_with("short-token")
    mocks["list_pages"].assert_awaited_once_with("fb-user-1", "long-token")

    async with async_session_factory() as session:
        accounts = (
            await session.execute(select(SocialAccount).order_by(SocialAccount.account_id))
        ).scalars().all()
        refreshed = (await session.execute(select(RetailPartner).where(RetailPartner.id == p.id))).scalar_one()
        leftover = (await session.execute(select(func.count()).select_from(OAuthState))).scalar_one()
    assert [a.account_id for a in accounts] == ["page-1", "page-2"]
    assert {a.access_token for a in accounts} == {"page-token-1", "page-token-2"}
    assert all(a.status == "active" and a.platform == "facebook" for a in accounts)
    assert all(a.access_token != "short-token" for a in accounts), "short-lived token must never be stored"
    expiry = accounts[0].token_expiry.replace(tzinfo=timezone.utc)
    assert expiry > datetime.now(timezone.utc) + timedelta(days=59)
    assert refreshed.status == "active"
    assert refreshed.connection_date is not None
    assert leftover == 0, "state must be consumed"


@pytest.mark.asyncio
async def test_callback_state_is_single_use(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    state = await issue_state(client, brand.id, p.id)
    with patch.multiple(GRAPH, **graph_mocks()):
        first = await client.get("/facebook-auth/callback", params={"code": "c", "state": state})
        second = await client.get("/facebook-auth/callback", params={"code": "c", "state": state})
    assert first.headers["location"].startswith("/partner-connect-success")
    assert second.headers["location"] == "/facebook-error?message=oauth_state_mismatch"


@pytest.mark.asyncio
async def test_callback_reconnect_updates_existing_rows(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed, status="active")
    await seed(
        SocialAccount(
            partner_id=p.id,
            platform="facebook",
            account_id="page-1",
            account_name="Old name",
            access_token="stale",
            status="expired",
        )
    )
    state = await issue_state(client, brand.id, p.id)
    with patch.multiple(GRAPH, **graph_mocks()):
        resp = await client.get(
            "/facebook-auth/callback",
            params={"code": "c", "state": state, "pageIds": "page-1"},
        )
    assert resp.headers["location"].startswith("/partner-connect-success"), resp.headers["location"]
    async with async_session_factory() as session:
        accounts = (await session.execute(select(SocialAccount))).scalars().all()
    assert len(accounts) == 1
    assert accounts[0].account_name == "Corner Store Page"
    assert accounts[0].access_token == "page-token-1"
    assert accounts[0].status == "active"


@pytest.mark.asyncio
async def test_callback_instagram_links_business_accounts(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    state = await issue_state(client, brand.id, p.id, platform="instagram")

    def instagram(page_id: str, token: str):
        return {"id": "ig-1", "username": "cornerstore"} if page_id == "page-2" else None

    with patch.multiple(GRAPH, **graph_mocks(instagram=instagram)):
        resp = await client.get("/facebook-auth/callback", params={"code": "c", "state": state})
    assert resp.headers["location"].startswith("/partner-connect-success"), resp.headers["location"]
    async with async_session_factory() as session:
        accounts = (await session.execute(select(SocialAccount))).scalars().all()
    assert [(a.platform, a.account_id, a.account_name) for a in accounts] == [("instagram", "ig-1", "cornerstore")]
    assert accounts[0].access_token == "page-token-2"


@pytest.mark.asyncio
async def test_callback_rejected_code_is_auth_error(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    state = await issue_state(client, brand.id, p.id)
    mocks = graph_mocks()
    mocks["exchange_code_for_token"] = AsyncMock(
        side_effect=ExternalServiceError("facebook_api_error", "Invalid verification code", http_status=400)
    )
    with patch.multiple(GRAPH, **mocks):
        resp = await client.get("/facebook-auth/callback", params={"code": "bad", "state": state})
    assert resp.headers["location"] == "/facebook-error?message=oauth_code_exchange_failed"
    assert await account_count() == 0


@pytest.mark.asyncio
async def test_callback_graph_outage_is_external_error(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed)
    state = await issue_state(client, brand.id, p.id)
    mocks = graph_mocks()
    mocks["list_pages"] = AsyncMock(side_effect=ExternalServiceError("facebook_unreachable", "timeout"))
    with patch.multiple(GRAPH, **mocks):
        resp = await client.get("/facebook-auth/callback", params={"code": "c", "state": state})
    assert resp.headers["location"] == "/facebook-error?message=facebook_unreachable"
    assert await account_count() == 0


@pytest.mark.asyncio
async def test_callback_user_denied(client: AsyncClient, seed) -> None:
    await make_partner(seed)
    resp = await client.get("/facebook-auth/callback", params={"error": "access_denied", "state": "x"})
    assert resp.status_code == 302
    assert resp.headers["location"] == "/facebook-error?message=oauth_denied"


@pytest.mark.asyncio
async def test_list_and_disconnect_accounts(client: AsyncClient, seed) -> None:
    brand, p = await make_partner(seed, status="active")
    account = await seed(
        SocialAccount(
            partner_id=p.id,
            platform="facebook",
            account_id="page-1",
            account_name="Corner Store Page",
            access_token="secret-token",
            status="active",
        )
    )

    listed = await client.get(f"/social-accounts/partner/{p.id}", headers=partner_headers(brand.id, p.id))
    assert listed.status_code == 200, listed.text
    rows = listed.json()
    assert [r["accountId"] for r in rows] == ["page-1"]
    assert "accessToken" not in rows[0], "tokens must not leak"

    other_brand = await seed(Brand(name="Other"))
    foreign = await client.delete(f"/social-accounts/{account.id}", headers=brand_headers(other_brand.id))
    assert foreign.status_code == 403, foreign.text

    resp = await client.delete(f"/social-accounts/{account.id}", headers=partner_headers(brand.id, p.id))
    assert resp.status_code == 204, resp.text
    assert await account_count() == 0

    again = await client.delete(f"/social-accounts/{account.id}", headers=brand_headers(brand.id))
    assert again.status_code == 404
