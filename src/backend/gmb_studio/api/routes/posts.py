from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.models import GmbAccount, GmbLocation, GmbPost, PostStatus
from gmb_studio.schemas.posts import PostCreate, PostRead, PostUpdate

router = APIRouter(prefix="/posts", tags=["posts"])


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _owned_post(db: Session, user: AuthUser, post_id: str) -> GmbPost:
    post = db.execute(
        select(GmbPost).where(GmbPost.id == post_id, GmbPost.user_id == user.subject)
    ).scalar_one_or_none()
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _ensure_location(db: Session, user: AuthUser, location_id: str) -> None:
    owned = db.execute(
        select(GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbLocation.id == location_id, GmbAccount.user_id == user.subject)
    ).scalar_one_or_none()
    if owned is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")


@router.get("", response_model=list[PostRead])
def list_posts(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[GmbPost]:
    stmt = select(GmbPost).where(GmbPost.user_id == user.subject).order_by(GmbPost.created_at.desc())
    if location_id:
        stmt = stmt.where(GmbPost.location_id == location_id)
    return list(db.execute(stmt).scalars())


@router.post("", response_model=PostRead, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> GmbPost:
    _ensure_location(db, user, payload.location_id)
    post = GmbPost(
        user_id=user.subject,
        location_id=payload.location_id,
        post_type=payload.post_type,
        caption=payload.caption,
        image_url=payload.image_url,
        media_urls=payload.media_urls,
        status=payload.status,
        scheduled_at=payload.scheduled_at,
        published_at=_now() if payload.status == PostStatus.PUBLISHED else None,
        engagement={},
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


@router.patch("/{post_id}", response_model=PostRead)
def update_post(
    post_id: str,
    payload: PostUpdate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> GmbPost:
    post = _owned_post(db, user, post_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(post, field, value)

    if post.status == PostStatus.SCHEDULED and post.scheduled_at is None:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="scheduled_at is required for scheduled posts",
        )
    if post.status == PostStatus.PUBLISHED and post.published_at is None:
        post.published_at = _now()

    db.commit()
    db.refresh(post)
    return post


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: str,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> Response:
    post = _owned_post(db, user, post_id)
    db.delete(post)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
