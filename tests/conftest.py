from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gmb_studio import models  # noqa: F401  registers tables on Base.metadata
from gmb_studio.api import deps
from gmb_studio.core import auth
from gmb_studio.core.config import get_settings
from gmb_studio.db.base import Base
from gmb_studio.google.client import GoogleBusinessClient
from gmb_studio.google.oauth import GoogleOAuthClient
from gmb_studio.main import app
from gmb_studio.models import GmbAccount, GmbLocation

JWT_SECRET = "unit-test-jwt-secret"
PROVIDER_ENV = (
    "GROQ_API_KEY",
    "DEEPSEEK_API_KEY",
    "TOGETHER_API_KEY",
    "MISTRAL_API_KEY",
    "PERPLEXITY_API_KEY",
    "GEMINI_API_KEY",
    "COHERE_API_KEY",
    "OPENAI_API_KEY",
)

Handler = Callable[[httpx.Request], httpx.Response]


def make_token(subject: str = "user-1", **claims: Any) -> str:
    payload = {
        "sub": subject,
        "aud": "authenticated",
        "role": "authenticated",
        "email": f"{subject}@example.com",
        "exp": dt.datetime.now(dt.timezone.utc) + dt.timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(subject: str = "user-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(subject)}"}


def _clear_caches() -> None:
    get_settings.cache_clear()
    auth.get_token_verifier.cache_clear()


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("AUTH_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id.apps.googleusercontent.com")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "google-client-secret")
    monkeypatch.setenv("FRONTEND_URL", "http://localhost:5173")
    monkeypatch.delenv("FRONTEND_REDIRECT_ERROR", raising=False)
    for var in PROVIDER_ENV:
        monkeypatch.delenv(var, raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def session_factory() -> Iterator[sessionmaker[Session]]:
    engine = create_engine(
        "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class GoogleStub:
    """Routes outbound Google calls to per-test handlers and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handlers: list[tuple[str, str, Handler]] = []

    def on(self, method: str, url_fragment: str, handler: Handler) -> None:
        self.handlers.append((method.upper(), url_fragment, handler))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, fragment, handler in self.handlers:
            if request.method == method and fragment in str(request.url):
                return handler(request)
        return httpx.Response(404, json={"error": {"message": f"unexpected {request.method} {request.url}"}})

    def calls_to(self, fragment: str) -> list[httpx.Request]:
        return [request for request in self.requests if fragment in str(request.url)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def google() -> Iterator[GoogleStub]:
    stub = GoogleStub()

    def oauth_client() -> GoogleOAuthClient:
        return GoogleOAuthClient(get_settings(), transport=stub.transport())

    def client_factory():
        return lambda token: GoogleBusinessClient(token, transport=stub.transport())

    app.dependency_overrides[deps.get_oauth_client] = oauth_client
    app.dependency_overrides[deps.get_google_client_factory] = client_factory
    yield stub
    app.dependency_overrides.pop(deps.get_oauth_client, None)
    app.dependency_overrides.pop(deps.get_google_client_factory, None)


def seed_account(
    session: Session,
    user_id: str = "user-1",
    account_id: str | None = "accounts/123",
    expires_in: dt.timedelta = dt.timedelta(hours=1),
    refresh_token: str | None = "refresh-1",
) -> GmbAccount:
    account = GmbAccount(
        user_id=user_id,
        account_name="Cafe Demo",
        account_email="owner@example.com",
        account_id=account_id,
        access_token="access-1",
        refresh_token=refresh_token,
        token_expires_at=dt.datetime.now(dt.timezone.utc) + expires_in,
        is_active=True,
    )
    session.add(account)
    session.commit()
    return account


def seed_location(session: Session, account: GmbAccount, location_id: str = "locations/456", name: str = "Cafe Downtown") -> GmbLocation:
    location = GmbLocation(
        gmb_account_id=account.id,
        location_id=location_id,
        location_name=name,
        is_active=True,
    )
    session.add(location)
    session.commit()
    return location
