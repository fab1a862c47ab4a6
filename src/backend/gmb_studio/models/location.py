from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from gmb_studio.models.account import GmbAccount
    from gmb_studio.models.insight import GmbInsight
    from gmb_studio.models.post import GmbPost
    from gmb_studio.models.presence import GmbCitation, GmbMedia, GmbRanking
    from gmb_studio.models.review import GmbReview


class GmbLocation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_locations"
    __table_args__ = (
        Index("ix_gmb_locations_location_id", "location_id", unique=True),
        Index("ix_gmb_locations_gmb_account_id", "gmb_account_id"),
    )

    gmb_account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_accounts.id", ondelete="CASCADE"), nullable=False
    )
    location_id: Mapped[str] = mapped_column(String(255), nullable=False)
    location_name: Mapped[str] = mapped_column(String(300), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(64))
    category: Mapped[Optional[str]] = mapped_column(String(200))
    website: Mapped[Optional[str]] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    metadata_json: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata", JSONB().with_variant(JSON(), "sqlite"), default=dict
    )

    account: Mapped["GmbAccount"] = relationship(back_populates="locations")
    reviews: Mapped[list["GmbReview"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    posts: Mapped[list["GmbPost"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    insights: Mapped[list["GmbInsight"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    media: Mapped[list["GmbMedia"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    citations: Mapped[list["GmbCitation"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    rankings: Mapped[list["GmbRanking"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )

    @property
    def location_id_tail(self) -> str:
        """Trailing id segment of the Google resource name (``locations/456`` -> ``456``)."""
        return str(self.location_id or "").rsplit("/", 1)[-1]
