from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.models import GmbAccount, GmbLocation
from gmb_studio.schemas.insights import InsightCreate, InsightsResponse
from gmb_studio.services.insights import load_insights, summarize
from gmb_studio.services.persistence import upsert_insight

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("", response_model=InsightsResponse)
def get_insights(
    location_id: Optional[str] = Query(default=None, alias="locationId"),
    days: int = Query(default=7, ge=1, le=540),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> InsightsResponse:
    return summarize(load_insights(db, user.subject, days, location_id), days)


@router.post("", status_code=status.HTTP_201_CREATED)
def add_insight(
    payload: InsightCreate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> dict[str, object]:
    owned = db.execute(
        select(GmbLocation.id)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbLocation.id == payload.location_id, GmbAccount.user_id == user.subject)
    ).scalar_one_or_none()
    if owned is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Location not found")

    insight = upsert_insight(db, payload.model_dump())
    db.commit()
    return {
        "id": insight.id,
        "location_id": insight.location_id,
        "date": insight.date.isoformat(),
        "metric_type": insight.metric_type.value,
        "metric_value": insight.metric_value,
        "source": insight.source,
    }
