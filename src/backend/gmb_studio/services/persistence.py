from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.models import GmbInsight, GmbLocation, GmbReview
from gmb_studio.models.insight import NO_SOURCE

_LOCATION_FIELDS = ("gmb_account_id", "location_name", "address", "phone", "category", "website")
_REVIEW_FIELDS = (
    "location_id",
    "review_name",
    "author_name",
    "rating",
    "review_text",
    "review_date",
    "reply_text",
    "reply_date",
    "has_reply",
)


def upsert_location(session: Session, row: dict[str, Any]) -> GmbLocation:
    location_id = row.get("location_id")
    if not location_id:
        raise ValueError("Location missing location_id.")

    location = session.execute(
        select(GmbLocation).where(GmbLocation.location_id == location_id)
    ).scalar_one_or_none()
    if location is None:
        location = GmbLocation(location_id=location_id, is_active=True)
        session.add(location)

    for field in _LOCATION_FIELDS:
        setattr(location, field, row.get(field))
    session.flush()
    return location


def upsert_review(session: Session, row: dict[str, Any]) -> GmbReview:
    external_id = row.get("external_review_id")
    review = None
    if external_id:
        review = session.execute(
            select(GmbReview).where(GmbReview.external_review_id == external_id)
        ).scalar_one_or_none()
    if review is None:
        review = GmbReview(external_review_id=external_id)
        session.add(review)

    for field in _REVIEW_FIELDS:
        setattr(review, field, row.get(field))
    session.flush()
    return review


def upsert_insight(session: Session, row: dict[str, Any]) -> GmbInsight:
    source = row.get("source") or NO_SOURCE
    insight = session.execute(
        select(GmbInsight).where(
            GmbInsight.location_id == row["location_id"],
            GmbInsight.date == row["date"],
            GmbInsight.metric_type == row["metric_type"],
            GmbInsight.source == source,
        )
    ).scalar_one_or_none()
    if insight is None:
        insight = GmbInsight(
            location_id=row["location_id"],
            date=row["date"],
            metric_type=row["metric_type"],
            source=source,
        )
        session.add(insight)

    insight.metric_value = float(row.get("metric_value") or 0)
    session.flush()
    return insight
