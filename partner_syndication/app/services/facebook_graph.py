"""
Facebook Graph API client (httpx): Facebook Login token exchange, page listing, page/Instagram publishing.
Every failure surfaces as ExternalServiceError; nothing is retried. Tokens are never logged.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from app.config import get_settings
from app.errors import ExternalServiceError
from app.logging_config import get_logger

logger = get_logger(__name__)

GRAPH_BASE = "https://graph.facebook.com"
DIALOG_BASE = "https://www.facebook.com"
VIDEO_UPLOAD_TIMEOUT = 300.0


def _graph_url(path: str) -> str:
    settings = get_settings()
    return f"{GRAPH_BASE}/{settings.facebook_api_version}/{path.lstrip('/')}"


def build_oauth_url(redirect_uri: str, state: str) -> str:
    """Facebook Login dialog URL for the configured app and scopes."""
    settings = get_settings()
    query = urlencode(
        {
            "client_id": settings.facebook_app_id,
            "redirect_uri": redirect_uri,
            "state": state,
            "scope": ",".join(settings.facebook_scope_list),
            "response_type": "code",
        }
    )
    return f"{DIALOG_BASE}/{settings.facebook_api_version}/dialog/oauth?{query}"


async def _graph_request(
    method: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """One Graph call. Network errors and error payloads both raise ExternalServiceError."""
    settings = get_settings()
    try:
        async with httpx.AsyncClient(timeout=timeout or settings.facebook_http_timeout_seconds) as client:
            resp = await client.request(method, _graph_url(path), params=params, data=data)
    except httpx.HTTPError as e:
        logger.warning("facebook_graph.unreachable", path=path, error=str(e))
        raise ExternalServiceError("facebook_unreachable", f"Facebook API unreachable: {e}")

    try:
        body = resp.json()
    except ValueError:
        body = {}
    if resp.status_code >= 400 or (isinstance(body, dict) and "error" in body):
        err = body.get("error", {}) if isinstance(body, dict) else {}
        message = err.get("message", resp.text) if isinstance(err, dict) else resp.text
        logger.warning("facebook_graph.error", path=path, status=resp.status_code, error=message)
        raise ExternalServiceError(
            "facebook_api_error",
            message or "Facebook API error",
            extra={"status": resp.status_code},
            http_status=resp.status_code,
        )
    if not isinstance(body, dict):
        raise ExternalServiceError("facebook_api_error", "Unexpected Facebook API response")
    return body


async def exchange_code_for_token(code: str, redirect_uri: str) -> Dict[str, Any]:
    """OAuth code -> short-lived user token ({"access_token", "expires_in"?})."""
    settings = get_settings()
    return await _graph_request(
        "GET",
        "oauth/access_token",
        params={
            "client_id": settings.facebook_app_id,
            "client_secret": settings.facebook_app_secret,
            "redirect_uri": redirect_uri,
            "code": code,
        },
    )


async def exchange_for_long_lived_token(short_lived_token: str) -> Dict[str, Any]:
    """Short-lived user token -> long-lived user token (about 60 days)."""
    settings = get_settings()
    return await _graph_request(
        "GET",
        "oauth/access_token",
        params={
            "grant_type": "fb_exchange_token",
            "client_id": settings.facebook_app_id,
            "client_secret": settings.facebook_app_secret,
            "fb_exchange_token": short_lived_token,
        },
    )


async def get_me(user_token: str) -> Dict[str, Any]:
    return await _graph_request("GET", "me", params={"fields": "id,name", "access_token": user_token})


async def list_pages(user_id: str, user_token: str) -> List[Dict[str, Any]]:
    """Pages the user manages: [{"id", "name", "access_token"}, ...]."""
    body = await _graph_request(
        "GET",
        f"{user_id}/accounts",
        params={"fields": "id,name,access_token", "access_token": user_token},
    )
    return list(body.get("data") or [])


async def get_instagram_account(page_id: str, page_token: str) -> Optional[Dict[str, Any]]:
    """Instagram business account linked to the page ({"id", "username"}), or None."""
    body = await _graph_request(
        "GET",
        page_id,
        params={"fields": "instagram_business_account{id,username}", "access_token": page_token},
    )
    return body.get("instagram_business_account") or None


async def publish_page_post(
    page_id: str,
    page_token: str,
    message: str,
    image_url: Optional[str] = None,
    video_url: Optional[str] = None,
) -> str:
    """Post to a page: /videos for a video, /photos for an image, /feed otherwise. Returns the post id."""
    if video_url:
        body = await _graph_request(
            "POST",
            f"{page_id}/videos",
            data={"file_url": video_url, "description": message, "access_token": page_token},
            timeout=VIDEO_UPLOAD_TIMEOUT,
        )
    elif image_url:
        body = await _graph_request(
            "POST",
            f"{page_id}/photos",
            data={"url": image_url, "caption": message, "access_token": page_token},
        )
    else:
        body = await _graph_request(
            "POST",
            f"{page_id}/feed",
            data={"message": message, "access_token": page_token},
        )
    post_id = body.get("post_id") or body.get("id")
    if not post_id:
        raise ExternalServiceError("facebook_api_error", "Facebook API returned no post id")
    return str(post_id)


async def publish_instagram_media(ig_user_id: str, token: str, caption: str, image_url: str) -> str:
    """Create a media container, then publish it. Returns the Instagram media id."""
    container = await _graph_request(
        "POST",
        f"{ig_user_id}/media",
        data={"image_url": image_url, "caption": caption, "access_token": token},
    )
    creation_id = container.get("id")
    if not creation_id:
        raise ExternalServiceError("facebook_api_error", "Instagram media container was not created")
    published = await _graph_request(
        "POST",
        f"{ig_user_id}/media_publish",
        data={"creation_id": creation_id, "access_token": token},
    )
    media_id = published.get("id")
    if not media_id:
        raise ExternalServiceError("facebook_api_error", "Instagram publish returned no media id")
    return str(media_id)
