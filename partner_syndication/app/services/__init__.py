"""Business logic services."""
from app.services.evergreen_service import schedule_evergreen, select_evergreen_posts
from app.services.targeting_service import resolve_by_ids, resolve_by_tag
from app.services.social_connect_service import begin_connect, complete_connect, disconnect
from app.services.assignment_service import publish_assignment

__all__ = [
    "schedule_evergreen",
    "select_evergreen_posts",
    "resolve_by_ids",
    "resolve_by_tag",
    "begin_connect",
    "complete_connect",
    "disconnect",
    "publish_assignment",
]
