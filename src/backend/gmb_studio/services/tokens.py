from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from sqlalchemy.orm import Session

from gmb_studio.core.errors import ReconnectRequiredError
from gmb_studio.google.oauth import GoogleOAuthClient, TokenGrant
from gmb_studio.models import GmbAccount
from gmb_studio.services.normalize import parse_timestamp

logger = logging.getLogger(__name__)


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _parse_expiry(value: Any) -> dt.datetime | None:
    if isinstance(value, dt.datetime):
        return value if value.tzinfo else value.replace(tzinfo=dt.timezone.utc)
    return parse_timestamp(value)


def is_expired(account: GmbAccount, now: dt.datetime | None = None) -> bool:
    expires_at = _parse_expiry(account.token_expires_at)
    if expires_at is None or not account.access_token:
        return True
    return expires_at <= (now or _now())


def apply_grant(account: GmbAccount, grant: TokenGrant, now: dt.datetime | None = None) -> None:
    account.access_token = grant.access_token
    account.token_expires_at = (now or _now()) + dt.timedelta(seconds=grant.expires_in)
    if grant.refresh_token:
        account.refresh_token = grant.refresh_token


def force_refresh(session: Session, account: GmbAccount, oauth: GoogleOAuthClient) -> TokenGrant:
    if not account.refresh_token:
        raise ReconnectRequiredError("No refresh token available")

    grant = oauth.refresh_access_token(account.refresh_token)
    apply_grant(account, grant)
    session.add(account)
    session.commit()
    logger.info("Refreshed Google access token for account %s", account.id)
    return grant


def ensure_access_token(
    session: Session,
    account: GmbAccount,
    oauth: GoogleOAuthClient,
    now: dt.datetime | None = None,
) -> str:
    if not is_expired(account, now):
        return account.access_token  # type: ignore[return-value]

    if not account.refresh_token:
        raise ReconnectRequiredError("Token expired and no refresh token available")

    return force_refresh(session, account, oauth).access_token
