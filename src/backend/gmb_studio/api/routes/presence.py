"""Read-only views backing the media, citations and rankings tabs."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.models import GmbAccount, GmbCitation, GmbLocation, GmbMedia, GmbRanking
from gmb_studio.schemas.presence import CitationRead, MediaRead, RankingRead

router = APIRouter(tags=["presence"])


def _owned(model, user: AuthUser, location_id: Optional[str]) -> Select:
    stmt = (
        select(model)
        .join(GmbLocation, model.location_id == GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbAccount.user_id == user.subject)
    )
    if location_id:
        stmt = stmt.where(model.location_id == location_id)
    return stmt


@router.get("/media", response_model=list[MediaRead])
def list_media(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    category: Optional[str] = Query(default=None),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[GmbMedia]:
    stmt = _owned(GmbMedia, user, location_id).order_by(GmbMedia.uploaded_at.desc())
    # "all" is the gallery's unfiltered tab
    if category and category != "all":
        stmt = stmt.where(GmbMedia.category == category)
    return list(db.execute(stmt).scalars())


@router.get("/citations", response_model=list[CitationRead])
def list_citations(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[GmbCitation]:
    stmt = _owned(GmbCitation, user, location_id).order_by(GmbCitation.created_at.desc())
    return list(db.execute(stmt).scalars())


@router.get("/rankings", response_model=list[RankingRead])
def list_rankings(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[GmbRanking]:
    stmt = _owned(GmbRanking, user, location_id).order_by(GmbRanking.keyword)
    return list(db.execute(stmt).scalars())
