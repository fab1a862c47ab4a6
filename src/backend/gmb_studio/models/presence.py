"""Media, directory citations and keyword rankings tracked per location."""
from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from gmb_studio.models.location import GmbLocation


class GmbMedia(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_media"
    __table_args__ = (Index("ix_gmb_media_location_id", "location_id"),)

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    media_type: Mapped[str] = mapped_column(String(32), nullable=False, default="photo")
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    caption: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(String(64))
    uploaded_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    location: Mapped["GmbLocation"] = relationship(back_populates="media")


class GmbCitation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A business listing on a third-party directory, checked against the NAP on file"""

    __tablename__ = "gmb_citations"
    __table_args__ = (Index("ix_gmb_citations_location_id", "location_id"),)

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    directory_name: Mapped[str] = mapped_column(String(200), nullable=False)
    directory_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    citation_url: Mapped[Optional[str]] = mapped_column(String(1000))
    business_name: Mapped[Optional[str]] = mapped_column(String(300))
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(64))
    website: Mapped[Optional[str]] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    last_checked: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))

    location: Mapped["GmbLocation"] = relationship(back_populates="citations")


class GmbRanking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_rankings"
    __table_args__ = (UniqueConstraint("location_id", "keyword", name="uq_gmb_rankings_location_keyword"),)

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    keyword: Mapped[str] = mapped_column(String(300), nullable=False)
    current_position: Mapped[Optional[int]] = mapped_column(Integer)
    previous_position: Mapped[Optional[int]] = mapped_column(Integer)
    best_position: Mapped[Optional[int]] = mapped_column(Integer)
    search_volume: Mapped[Optional[int]] = mapped_column(Integer)
    difficulty: Mapped[Optional[str]] = mapped_column(String(32))
    last_checked: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))

    location: Mapped["GmbLocation"] = relationship(back_populates="rankings")
