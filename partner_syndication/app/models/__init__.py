"""SQLAlchemy models for partner syndication."""
from app.models.brand import Brand
from app.models.retail_partner import RetailPartner
from app.models.social_account import SocialAccount
from app.models.content_post import ContentPost
from app.models.post_assignment import PostAssignment
from app.models.invite import Invite
from app.models.oauth_state import OAuthState
from app.models.media_item import MediaItem

__all__ = [
    "Brand",
    "RetailPartner",
    "SocialAccount",
    "ContentPost",
    "PostAssignment",
    "Invite",
    "OAuthState",
    "MediaItem",
]
