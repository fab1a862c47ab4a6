from __future__ import annotations

import datetime as dt
import enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from gmb_studio.models.location import GmbLocation


class PostType(str, enum.Enum):
    PHOTO = "photo"
    EVENT = "event"
    OFFER = "offer"
    UPDATE = "update"


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    FAILED = "failed"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class GmbPost(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_posts"
    __table_args__ = (
        Index("ix_gmb_posts_user_id", "user_id"),
        Index("ix_gmb_posts_location_id", "location_id"),
        Index("ix_gmb_posts_status", "status"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    post_type: Mapped[PostType] = mapped_column(
        Enum(PostType, name="gmb_post_type", values_callable=_enum_values),
        default=PostType.UPDATE,
        nullable=False,
    )
    caption: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000))
    media_urls: Mapped[list[str]] = mapped_column(JSONB().with_variant(JSON(), "sqlite"), default=list)
    external_post_id: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, name="gmb_post_status", values_callable=_enum_values),
        default=PostStatus.DRAFT,
        nullable=False,
    )
    scheduled_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    published_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True))
    engagement: Mapped[dict[str, Any]] = mapped_column(JSONB().with_variant(JSON(), "sqlite"), default=dict)

    location: Mapped["GmbLocation"] = relationship(back_populates="posts")
