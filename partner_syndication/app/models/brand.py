"""Brand model."""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class Brand(Base):
    """Brand (tenant): authors content and owns retail partners."""

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    logo: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    primary_color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    retail_partners = relationship("RetailPartner", back_populates="brand")
    content_posts = relationship("ContentPost", back_populates="brand")
    invites = relationship("Invite", back_populates="brand")
    media_items = relationship("MediaItem", back_populates="brand")
