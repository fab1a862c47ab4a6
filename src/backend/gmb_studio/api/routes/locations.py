from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.models import GmbAccount, GmbLocation
from gmb_studio.schemas.accounts import LocationRead

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=list[LocationRead])
def list_locations(
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[GmbLocation]:
    stmt = (
        select(GmbLocation)
        .join(GmbAccount, GmbLocation.gmb_account_id == GmbAccount.id)
        .where(GmbAccount.user_id == user.subject)
        .order_by(GmbLocation.location_name)
    )
    if account_id:
        stmt = stmt.where(GmbLocation.gmb_account_id == account_id)
    return list(db.execute(stmt).scalars())
