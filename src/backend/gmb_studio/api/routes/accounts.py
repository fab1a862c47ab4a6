from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.models import GmbAccount, GmbLocation
from gmb_studio.schemas.accounts import AccountRead, AccountUpdate

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _serialize(account: GmbAccount, total_locations: int) -> AccountRead:
    return AccountRead(
        id=account.id,
        account_name=account.account_name,
        account_email=account.account_email,
        account_id=account.account_id,
        is_active=account.is_active,
        status=account.status,
        total_locations=total_locations,
        last_sync=account.last_sync,
        created_at=account.created_at,
    )


def _location_count(db: Session, account_id: str) -> int:
    return db.execute(
        select(func.count(GmbLocation.id)).where(GmbLocation.gmb_account_id == account_id)
    ).scalar_one()


@router.get("", response_model=list[AccountRead])
def list_accounts(
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> list[AccountRead]:
    counts = (
        select(GmbLocation.gmb_account_id, func.count(GmbLocation.id).label("total"))
        .group_by(GmbLocation.gmb_account_id)
        .subquery()
    )
    rows = db.execute(
        select(GmbAccount, func.coalesce(counts.c.total, 0))
        .outerjoin(counts, counts.c.gmb_account_id == GmbAccount.id)
        .where(GmbAccount.user_id == user.subject)
        .order_by(GmbAccount.created_at.desc())
    ).all()
    return [_serialize(account, total) for account, total in rows]


@router.patch("/{account_id}", response_model=AccountRead)
def update_account(
    account_id: str,
    payload: AccountUpdate,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> AccountRead:
    account = deps.get_owned_account(db, user, account_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(account, field, value)
    db.commit()
    return _serialize(account, _location_count(db, account.id))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
) -> Response:
    account = deps.get_owned_account(db, user, account_id)
    db.delete(account)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
