"""API routers."""
from app.routers.health_router import router as health_router
from app.routers.brands_router import router as brands_router
from app.routers.partners_router import router as partners_router
from app.routers.content_router import router as content_router
from app.routers.assignments_router import router as assignments_router
from app.routers.facebook_auth_router import router as facebook_auth_router
from app.routers.social_accounts_router import router as social_accounts_router
from app.routers.invites_router import router as invites_router
from app.routers.media_router import router as media_router

__all__ = [
    "health_router",
    "brands_router",
    "partners_router",
    "content_router",
    "assignments_router",
    "facebook_auth_router",
    "social_accounts_router",
    "invites_router",
    "media_router",
]
