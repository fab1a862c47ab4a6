from __future__ import annotations

import datetime as dt
from urllib.parse import parse_qs, urlparse

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import select

from gmb_studio.models import GmbAccount, OAuthState

from conftest import GoogleStub, auth_headers


def test_auth_url_returns_json_and_stores_state(client: TestClient, session_factory) -> None:
    response = client.post("/api/v1/oauth/google/auth-url", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["authUrl"] == body["url"]

    parsed = urlparse(body["authUrl"])
    params = parse_qs(parsed.query)
    assert parsed.netloc == "accounts.google.com"
    assert params["client_id"] == ["client-id.apps.googleusercontent.com"]
    assert params["response_type"] == ["code"]
    assert params["access_type"] == ["offline"]
    assert params["prompt"] == ["consent"]
    assert params["state"] == [body["state"]]
    assert "https://www.googleapis.com/auth/business.manage" in params["scope"][0].split()

    with session_factory() as session:
        state = session.get(OAuthState, body["state"])
        assert state is not None
        assert state.user_id == "user-1"


def test_auth_url_can_redirect(client: TestClient) -> None:
    response = client.get(
        "/api/v1/oauth/google/auth-url", params={"redirect": "true"}, headers=auth_headers(), follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"].startswith("https://accounts.google.com/o/oauth2/v2/auth?")


def test_auth_url_requires_auth(client: TestClient) -> None:
    assert client.post("/api/v1/oauth/google/auth-url").status_code == 401


def test_callback_connects_account(client: TestClient, session_factory, google: GoogleStub) -> None:
    state = client.post("/api/v1/oauth/google/auth-url", headers=auth_headers()).json()["state"]

    google.on(
        "POST",
        "oauth2.googleapis.com/token",
        lambda r: httpx.Response(200, json={"access_token": "g-access", "refresh_token": "g-refresh", "expires_in": 3599}),
    )
    google.on("GET", "oauth2/v2/userinfo", lambda r: httpx.Response(200, json={"email": "owner@cafe.test", "name": "Owner"}))
    google.on(
        "GET",
        "mybusinessaccountmanagement.googleapis.com/v1/accounts",
        lambda r: httpx.Response(200, json={"accounts": [{"name": "accounts/777", "accountName": "Cafe Group"}]}),
    )

    response = client.get(
        "/api/v1/oauth/google/callback", params={"code": "auth-code", "state": state}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:5173/accounts"
    token_request = google.calls_to("oauth2.googleapis.com/token")[0]
    assert parse_qs(token_request.content.decode())["grant_type"] == ["authorization_code"]

    with session_factory() as session:
        account = session.execute(select(GmbAccount)).scalar_one()
        assert account.user_id == "user-1"
        assert account.account_id == "accounts/777"
        assert account.account_name == "Cafe Group"
        assert account.account_email == "owner@cafe.test"
        assert account.refresh_token == "g-refresh"
        assert session.get(OAuthState, state) is None

    # state is single use
    replay = client.get(
        "/api/v1/oauth/google/callback", params={"code": "auth-code", "state": state}, follow_redirects=False
    )
    assert replay.status_code == 302
    assert "#error=" in replay.headers["location"]


def test_callback_with_expired_state_redirects_with_error(client: TestClient, session_factory, google: GoogleStub) -> None:
    with session_factory() as session:
        session.add(
            OAuthState(
                state="old-state",
                user_id="user-1",
                created_at=dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=2),
            )
        )
        session.commit()

    response = client.get(
        "/api/v1/oauth/google/callback", params={"code": "c", "state": "old-state"}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"].startswith("http://localhost:5173/accounts#error=")
    assert google.calls_to("oauth2.googleapis.com/token") == []


def test_callback_exchange_failure_redirects_with_error(client: TestClient, google: GoogleStub) -> None:
    state = client.post("/api/v1/oauth/google/auth-url", headers=auth_headers()).json()["state"]
    google.on("POST", "oauth2.googleapis.com/token", lambda r: httpx.Response(400, json={"error": "invalid_grant"}))

    response = client.get(
        "/api/v1/oauth/google/callback", params={"code": "bad", "state": state}, follow_redirects=False
    )
    assert response.status_code == 302
    assert "#error=" in response.headers["location"]
