"""Social account connect/list schemas."""
from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class OAuthUrlResponse(CamelModel):
    url: str


class SocialAccountOut(CamelModel):
    """Tokens are never returned."""

    id: int
    partner_id: int
    platform: str
    account_id: str
    account_name: str
    token_expiry: Optional[datetime] = None
    status: str
    created_at: Optional[datetime] = None
