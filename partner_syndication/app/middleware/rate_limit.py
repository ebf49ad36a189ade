"""
Rate limit middleware: Redis sliding window keyed on the caller's tenant (X-Tenant-ID),
falling back to the partner or user header. Default 60 req/min. Without REDIS_URL it is a no-op.
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.logging_config import get_logger

logger = get_logger(__name__)

REDIS_KEY_PREFIX = "rl:"
WINDOW_SECONDS = 60


def _rate_limit_key(request: Request) -> Optional[str]:
    """Key for the window: tenant first, then partner, then user; None = not limited."""
    tenant = request.headers.get("X-Tenant-ID", "").strip()
    if tenant:
        return f"tenant:{tenant}"
    partner = request.headers.get("X-Partner-ID", "").strip()
    if partner:
        return f"partner:{partner}"
    user = request.headers.get("X-User-ID", "").strip()
    if user:
        return f"user:{user[:32]}"
    return None


async def _check_sliding_window(redis_url: str, key: str, limit: int) -> bool:
    """
    Sliding window: ZADD now, ZREMRANGEBYSCORE -inf (now-60), ZCARD.
    True if the request is allowed. Redis being down never blocks traffic.
    """
    now = time.time()
    rkey = REDIS_KEY_PREFIX + key
    client = Redis.from_url(redis_url, decode_responses=True)
    try:
        pipe = client.pipeline()
        pipe.zadd(rkey, {str(uuid.uuid4()): now})
        pipe.zremrangebyscore(rkey, "-inf", now - WINDOW_SECONDS)
        pipe.zcard(rkey)
        pipe.expire(rkey, WINDOW_SECONDS + 10)
        results = await pipe.execute()
        count = results[2] if len(results) > 2 else 0
        return count <= limit
    except (RedisError, OSError) as e:
        logger.warning("rate_limit.redis_error", key=key, error=str(e))
        return True
    finally:
        await client.aclose()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-tenant rate limit (Redis sliding window)."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.redis_url:
            return await call_next(request)
        key = _rate_limit_key(request)
        if not key:
            return await call_next(request)
        limit = settings.rate_limit_per_min
        allowed = await _check_sliding_window(settings.redis_url, key, limit)
        if not allowed:
            logger.info("rate_limit.exceeded", key=key, limit=limit)
            return Response(
                content='{"detail":"Rate limit exceeded (per tenant).","code":"rate_limited"}',
                status_code=429,
                media_type="application/json",
            )
        return await call_next(request)
