from __future__ import annotations

import datetime as dt
import enum
from typing import TYPE_CHECKING

from sqlalchemy import Date, Enum, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gmb_studio.db.base import Base
from gmb_studio.models.base import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from gmb_studio.models.location import GmbLocation


class MetricType(str, enum.Enum):
    VIEWS = "views"
    SEARCHES = "searches"
    CALLS = "calls"
    MESSAGES = "messages"
    DIRECTIONS = "directions"
    WEBSITE_CLICKS = "website_clicks"


# Stored for metrics that do not decompose by channel; keeps the unique key non-null.
NO_SOURCE = ""


class GmbInsight(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gmb_insights"
    __table_args__ = (
        UniqueConstraint(
            "location_id", "date", "metric_type", "source", name="uq_gmb_insights_location_date_metric_source"
        ),
    )

    location_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("gmb_locations.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    metric_type: Mapped[MetricType] = mapped_column(
        Enum(
            MetricType,
            name="gmb_metric_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    metric_value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    source: Mapped[str] = mapped_column(String(32), nullable=False, default=NO_SOURCE)

    location: Mapped["GmbLocation"] = relationship(back_populates="insights")
