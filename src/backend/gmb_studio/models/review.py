from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from gmb_studio.models.location import GmbLocation


class GmbReview(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_reviews"
    __table_args__ = (
        Index("ix_gmb_reviews_external_review_id", "external_review_id", unique=True),
        Index("ix_gmb_reviews_location_id", "location_id"),
        Index("ix_gmb_reviews_review_date", "review_date"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="rating_range"),
    )

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    external_review_id: Mapped[Optional[str]] = mapped_column(String(255))
    review_name: Mapped[Optional[str]] = mapped_column(String(500))
    author_name: Mapped[str] = mapped_column(String(300), nullable=False, default="Anonymous")
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    review_text: Mapped[Optional[str]] = mapped_column(Text)
    review_date: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reply_text: Mapped[Optional[str]] = mapped_column(Text)
    reply_date: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    has_reply: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    location: Mapped["GmbLocation"] = relationship(back_populates="reviews")
