from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.api import deps
from gmb_studio.core.auth import AuthUser
from gmb_studio.core.config import get_settings
from gmb_studio.core.errors import GoogleAPIError, TokenRefreshError
from gmb_studio.google.oauth import GoogleOAuthClient, TokenGrant
from gmb_studio.models import GmbAccount, OAuthState
from gmb_studio.schemas.sync import AuthUrlResponse
from gmb_studio.services.tokens import apply_grant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth/google", tags=["oauth"])


class OAuthCallbackError(Exception):
    pass


def _error_redirect(message: str) -> RedirectResponse:
    target = f"{get_settings().error_redirect_url}#error={quote(message)}"
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)


def _consume_state(db: Session, state: str) -> str:
    """Delete the pending state row and return the user it was issued to."""
    record = db.get(OAuthState, state)
    if record is None:
        raise OAuthCallbackError("Invalid or expired state")
    user_id, created = record.user_id, record.created_at
    db.delete(record)
    db.commit()

    if created.tzinfo is None:
        created = created.replace(tzinfo=dt.timezone.utc)
    ttl = dt.timedelta(minutes=get_settings().oauth_state_ttl_minutes)
    if dt.datetime.now(dt.timezone.utc) - created > ttl:
        raise OAuthCallbackError("Invalid or expired state")
    return user_id


def _upsert_account(
    db: Session,
    user_id: str,
    grant: TokenGrant,
    userinfo: dict,
    google_account: Optional[dict],
) -> GmbAccount:
    account_id = (google_account or {}).get("name")
    email = userinfo.get("email")

    stmt = select(GmbAccount).where(GmbAccount.user_id == user_id)
    if account_id:
        stmt = stmt.where(GmbAccount.account_id == account_id)
    else:
        stmt = stmt.where(GmbAccount.account_id.is_(None), GmbAccount.account_email == email)
    account = db.execute(stmt).scalar_one_or_none()
    if account is None:
        account = GmbAccount(user_id=user_id, account_id=account_id)
        db.add(account)

    account.account_name = (
        (google_account or {}).get("accountName") or userinfo.get("name") or "Google Business Account"
    )
    account.account_email = email
    account.is_active = True
    apply_grant(account, grant)
    db.commit()
    return account


@router.api_route("/auth-url", methods=["GET", "POST"], response_model=AuthUrlResponse)
def create_auth_url(
    redirect: bool = Query(default=False),
    db: Session = Depends(deps.get_db),
    user: AuthUser = Depends(deps.get_current_user),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
):
    state = str(uuid.uuid4())
    try:
        url = oauth.build_authorization_url(state)
    except TokenRefreshError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    db.add(OAuthState(state=state, user_id=user.subject))
    db.commit()

    if redirect:
        return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    return AuthUrlResponse(authUrl=url, url=url, state=state)


@router.get("/callback")
def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    oauth: GoogleOAuthClient = Depends(deps.get_oauth_client),
    google_factory: deps.GoogleClientFactory = Depends(deps.get_google_client_factory),
) -> RedirectResponse:
    if error:
        return _error_redirect(error)
    if not code or not state:
        return _error_redirect("Missing code or state")

    try:
        user_id = _consume_state(db, state)
        grant = oauth.exchange_code(code)
        userinfo = oauth.fetch_userinfo(grant.access_token)
        with google_factory(grant.access_token) as client:
            accounts = client.list_accounts()
        account = _upsert_account(db, user_id, grant, userinfo, accounts[0] if accounts else None)
    except (OAuthCallbackError, TokenRefreshError, GoogleAPIError, httpx.HTTPError) as exc:
        db.rollback()
        logger.warning("Google OAuth callback failed: %s", exc)
        return _error_redirect(str(exc) or "OAuth failed")

    logger.info("Connected Google account %s for user %s", account.account_id, account.user_id)
    frontend = get_settings().frontend_url.rstrip("/")
    return RedirectResponse(f"{frontend}/accounts", status_code=status.HTTP_302_FOUND)
