from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from gmb_studio.core.auth import AuthUser, unauthorized, verify_bearer_token
from gmb_studio.core.config import get_settings
from gmb_studio.db.session import SessionLocal
from gmb_studio.google.client import GoogleBusinessClient
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.models import GmbAccount

# auto_error=False so a missing header is a 401, not FastAPI's default 403
http_bearer = HTTPBearer(auto_error=False)

GoogleClientFactory = Callable[[str], GoogleBusinessClient]


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(http_bearer),
) -> AuthUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized("Missing authorization header")
    return verify_bearer_token(credentials.credentials)


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(get_settings())


def get_google_client_factory() -> GoogleClientFactory:
    timeout = get_settings().google_http_timeout

    def factory(access_token: str) -> GoogleBusinessClient:
        return GoogleBusinessClient(access_token, timeout=timeout)

    return factory


def get_llm_transport() -> Optional[httpx.AsyncBaseTransport]:
    return None


def get_owned_account(db: Session, user: AuthUser, account_id: str) -> GmbAccount:
    account = db.execute(
        select(GmbAccount).where(GmbAccount.id == account_id, GmbAccount.user_id == user.subject)
    ).scalar_one_or_none()
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account
