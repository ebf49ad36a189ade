"""Post assignment model."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base, JSONType


class PostAssignment(Base):
    """
    One post distributed to one partner.
    (post_id, partner_id, scheduled_at, platforms) never change after insert; only the publish
    fields (status, published_url, published_date, error_message) move.
    status: pending | published | failed.
    batch_id groups the rows created by one scheduling action.
    """

    __tablename__ = "post_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("content_posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    partner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("retail_partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    platforms: Mapped[List[str]] = mapped_column(JSONType, default=list, nullable=False)
    custom_footer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    custom_tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    published_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    published_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    post = relationship("ContentPost", back_populates="assignments")
    partner = relationship("RetailPartner", back_populates="post_assignments")
