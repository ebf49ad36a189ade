# Correlation-ID middleware: read X-Correlation-ID or create one, bind it (plus tenant and role) into the log context.
import uuid
from typing import Callable

import structlog.contextvars
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.logging_config import get_logger

logger = get_logger(__name__)

HEADER_CORRELATION_ID = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind correlation_id to the request log context and echo it in the response header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(HEADER_CORRELATION_ID, "").strip()
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        tenant = request.headers.get("X-Tenant-ID", "").strip()
        role = request.headers.get("X-Role", "").strip().lower()
        if tenant:
            structlog.contextvars.bind_contextvars(tenant_id=tenant)
        if role:
            structlog.contextvars.bind_contextvars(role=role)

        response = await call_next(request)
        response.headers[HEADER_CORRELATION_ID] = correlation_id
        return response
