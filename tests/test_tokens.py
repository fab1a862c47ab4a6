from __future__ import annotations

import datetime as dt
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from gmb_studio.core.config import get_settings
from gmb_studio.core.errors import ReconnectRequiredError, TokenRefreshError
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.services.tokens import ensure_access_token, force_refresh, is_expired

from conftest import GoogleStub, auth_headers, seed_account


def _oauth(handler) -> GoogleOAuthClient:
    return GoogleOAuthClient(get_settings(), transport=httpx.MockTransport(handler))


def _unexpected(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


def test_not_expired_token_is_returned_unchanged(session_factory) -> None:
    with session_factory() as session:
        account = seed_account(session)
        assert ensure_access_token(session, account, _oauth(_unexpected)) == "access-1"


def test_missing_or_past_expiry_counts_as_expired(session_factory) -> None:
    with session_factory() as session:
        account = seed_account(session, expires_in=dt.timedelta(seconds=-1))
        assert is_expired(account)
        account.token_expires_at = None
        assert is_expired(account)


def test_expired_token_is_refreshed_and_persisted(session_factory) -> None:
    seen: dict[str, list[str]] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(parse_qs(request.content.decode()))
        return httpx.Response(200, json={"access_token": "access-2", "refresh_token": "refresh-2"})

    with session_factory() as session:
        account = seed_account(session, expires_in=dt.timedelta(minutes=-5))
        before = dt.datetime.now(dt.timezone.utc)

        token = ensure_access_token(session, account, _oauth(handler))
        account_id = account.id

    assert token == "access-2"
    assert seen["grant_type"] == ["refresh_token"]
    assert seen["refresh_token"] == ["refresh-1"]

    with session_factory() as session:
        from gmb_studio.models import GmbAccount

        stored = session.get(GmbAccount, account_id)
        assert stored.access_token == "access-2"
        assert stored.refresh_token == "refresh-2"
        expires_at = stored.token_expires_at.replace(tzinfo=dt.timezone.utc)
        # expires_in defaults to one hour when Google omits it
        assert expires_at >= before + dt.timedelta(seconds=3590)


def test_expired_without_refresh_token_requires_reconnect(session_factory) -> None:
    with session_factory() as session:
        account = seed_account(session, expires_in=dt.timedelta(minutes=-5), refresh_token=None)
        with pytest.raises(ReconnectRequiredError, match="Token expired and no refresh token available"):
            ensure_access_token(session, account, _oauth(_unexpected))


def test_invalid_grant_requires_reconnect(session_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Token has been revoked."})

    with session_factory() as session:
        account = seed_account(session)
        with pytest.raises(ReconnectRequiredError):
            force_refresh(session, account, _oauth(handler))


def test_other_refresh_failures_carry_raw_body(session_factory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="backend exploded")

    with session_factory() as session:
        account = seed_account(session)
        with pytest.raises(TokenRefreshError) as exc:
            force_refresh(session, account, _oauth(handler))
    assert not isinstance(exc.value, ReconnectRequiredError)
    assert "backend exploded" in str(exc.value)


def test_missing_client_configuration(monkeypatch: pytest.MonkeyPatch, session_factory) -> None:
    monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)
    get_settings.cache_clear()

    with session_factory() as session:
        account = seed_account(session)
        with pytest.raises(TokenRefreshError, match="Missing Google OAuth configuration"):
            force_refresh(session, account, _oauth(_unexpected))


def test_refresh_endpoint_returns_new_token(client: TestClient, session_factory, google: GoogleStub) -> None:
    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(200, json={"access_token": "fresh", "expires_in": 1800}))
    with session_factory() as session:
        account = seed_account(session)

    response = client.post("/api/v1/gmb/refresh-token", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Token refreshed successfully",
        "access_token": "fresh",
        "expires_in": 1800,
    }


def test_refresh_endpoint_maps_invalid_grant_to_401(client: TestClient, session_factory, google: GoogleStub) -> None:
    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(400, json={"error": "invalid_grant"}))
    with session_factory() as session:
        account = seed_account(session)

    response = client.post("/api/v1/gmb/refresh-token", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_grant"
    assert response.json()["message"] == "Reconnect required"


def test_refresh_endpoint_maps_other_failures_to_500(client: TestClient, session_factory, google: GoogleStub) -> None:
    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(503, text="try later"))
    with session_factory() as session:
        account = seed_account(session)

    response = client.post("/api/v1/gmb/refresh-token", json={"accountId": account.id}, headers=auth_headers())

    assert response.status_code == 500
    assert response.json()["error"] == "try later"
