"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.errors import DomainError
from app.logging_config import configure_logging, get_logger
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.routers import (
    health_router,
    brands_router,
    partners_router,
    content_router,
    assignments_router,
    facebook_auth_router,
    social_accounts_router,
    invites_router,
    media_router,
)
from app.schemas.common import ErrorResponse

logger = get_logger(__name__)

__version__ = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging."""
    configure_logging()
    logger.info("app_started", version=__version__)
    yield
    logger.info("app_shutdown")


app = FastAPI(
    title="Partner Syndication",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Domain errors -> {"detail", "code", "extra"} with the error's HTTP status."""
    if exc.status_code >= 500:
        logger.warning("request.external_error", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request.rejected", path=request.url.path, code=exc.code, status=exc.status_code)
    body = ErrorResponse(detail=exc.message, code=exc.code, extra=exc.extra)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.include_router(health_router)
app.include_router(brands_router)
app.include_router(partners_router)
app.include_router(content_router)
app.include_router(assignments_router)
app.include_router(facebook_auth_router)
app.include_router(social_accounts_router)
app.include_router(invites_router)
app.include_router(media_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "partner_syndication", "version": __version__}
