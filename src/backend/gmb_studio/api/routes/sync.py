from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.schemas.sync import (
    AccountRequest,
    RefreshTokenResponse,
    SyncInsightsRequest,
    SyncRequest,
    SyncReviewsRequest,
)
from gmb_studio.services.sync import MissingAccountIdError, sync_insights, sync_locations, sync_reviews
from gmb_studio.services.tokens import ensure_access_token, force_refresh

router = APIRouter(prefix="/gmb", tags=["sync"])


@router.post("/sync")
def sync_account(
    payload: SyncRequest,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
    google_factory: deps.GoogleClientFactory = Depends(deps.get_google_client_factory),
) -> dict[str, Any]:
    account = deps.get_owned_account(db, user, payload.accountId)
    token = ensure_access_token(db, account, oauth)
    with google_factory(token) as client:
        try:
            return sync_locations(db, account, client, oauth)
        except MissingAccountIdError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/sync-reviews")
def sync_account_reviews(
    payload: SyncReviewsRequest,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
    google_factory: deps.GoogleClientFactory = Depends(deps.get_google_client_factory),
) -> dict[str, Any]:
    account = deps.get_owned_account(db, user, payload.accountId)
    token = ensure_access_token(db, account, oauth)
    with google_factory(token) as client:
        try:
            return sync_reviews(db, account, client, oauth, page_size=payload.pageSize)
        except MissingAccountIdError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/sync-insights")
def sync_account_insights(
    payload: SyncInsightsRequest,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
    google_factory: deps.GoogleClientFactory = Depends(deps.get_google_client_factory),
) -> dict[str, Any]:
    account = deps.get_owned_account(db, user, payload.accountId)
    token = ensure_access_token(db, account, oauth)
    with google_factory(token) as client:
        return sync_insights(db, account, client, oauth, days=payload.days)


@router.post("/refresh-token", response_model=RefreshTokenResponse)
def refresh_token(
    payload: AccountRequest,
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
) -> RefreshTokenResponse:
    account = deps.get_owned_account(db, user, payload.accountId)
    grant = force_refresh(db, account, oauth)
    return RefreshTokenResponse(
        success=True,
        message="Token refreshed successfully",
        access_token=grant.access_token,
        expires_in=grant.expires_in,
    )
