from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.models import GmbAccount, GmbLocation, GmbReview
from gmb_studio.schemas.reviews import ReviewCreate, ReviewRead, ReviewReplyRequest
from gmb_studio.services.sync import call_with_refresh
from gmb_studio.services.tokens import ensure_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])


def _serialize(review: GmbReview, location_name: Optional[str]) -> ReviewRead:
    data = ReviewRead.model_validate(review)
    data.location_name = location_name
    return data


def _owned_location(db: Session, user: AuthUser, location_id: str) -> GmbLocation:
    location = db.execute(
        select(GmbLocation)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbLocation.id == location_id, GmbAccount.user_id == user.subject)
    ).scalar_one_or_none()
    if location is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")
    return location


def _owned_review(db: Session, user: AuthUser, review_id: str) -> tuple[GmbReview, GmbLocation, GmbAccount]:
    row = db.execute(
        select(GmbReview, GmbLocation, GmbAccount)
        .join(GmbLocation, GmbReview.location_id == GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbReview.id == review_id, GmbAccount.user_id == user.subject)
    ).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    return row[0], row[1], row[2]


@router.get("", response_model=list[ReviewRead])
def list_reviews(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    rating: Optional[int] = Query(default=None, ge=0, le=5),
    has_reply: Optional[bool] = Query(default=None, alias="hasReply"),
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[ReviewRead]:
    stmt = (
        select(GmbReview, GmbLocation.location_name)
        .join(GmbLocation, GmbReview.location_id == GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbAccount.user_id == user.subject)
        .order_by(GmbReview.review_date.desc())
        .limit(limit)
    )
    if location_id:
        stmt = stmt.where(GmbReview.location_id == location_id)
    if rating is not None:
        stmt = stmt.where(GmbReview.rating == rating)
    if has_reply is not None:
        stmt = stmt.where(GmbReview.has_reply.is_(has_reply))
    return [_serialize(review, name) for review, name in db.execute(stmt).all()]


@router.post("", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> ReviewRead:
    location = _owned_location(db, user, payload.location_id)
    review = GmbReview(
        location_id=location.id,
        author_name=payload.author_name,
        rating=payload.rating,
        review_text=payload.review_text,
        review_date=payload.review_date or dt.datetime.now(dt.timezone.utc),
        has_reply=False,
    )
    db.add(review)
    db.commit()
    return _serialize(review, location.location_name)


@router.post("/{review_id}/reply", response_model=ReviewRead)
def reply_to_review(
    review_id: str,
    payload: ReviewReplyRequest,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
    google_factory: deps.GoogleClientFactory = Depends(deps.get_google_client_factory),
) -> ReviewRead:
    review, location, account = _owned_review(db, user, review_id)
    if payload.accountId and payload.accountId != account.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")

    if review.review_name:
        token = ensure_access_token(db, account, oauth)
        with google_factory(token) as client:
            call_with_refresh(
                db,
                account,
                client,
                oauth,
                lambda: client.update_review_reply(review.review_name, payload.replyText),
            )
        logger.info("Posted reply to Google for review %s", review.id)

    review.reply_text = payload.replyText
    review.reply_date = dt.datetime.now(dt.timezone.utc)
    review.has_reply = True
    db.commit()
    return _serialize(review, location.location_name)
