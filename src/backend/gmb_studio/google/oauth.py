"""OAuth2 authorization-code and refresh-token grants against Google."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from gmb_studio.core.config import Settings, get_settings
from gmb_studio.core.errors import ReconnectRequiredError, TokenRefreshError

logger = logging.getLogger(__name__)

SCOPES = (
    "https://www.googleapis.com/auth/business.manage",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)
DEFAULT_EXPIRES_IN = 3600


@dataclass
class TokenGrant:
    access_token: str
    expires_in: int = DEFAULT_EXPIRES_IN
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenGrant":
        access_token = payload.get("access_token")
        if not access_token:
            raise TokenRefreshError("Token response did not include an access_token")
        try:
            expires_in = int(payload.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN
        return cls(
            access_token=access_token,
            expires_in=expires_in,
            refresh_token=payload.get("refresh_token") or None,
            scope=payload.get("scope"),
            token_type=payload.get("token_type"),
        )


def _error_code(body: str) -> str | None:
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return None
    if isinstance(payload, dict):
        return payload.get("error")
    return None


class GoogleOAuthClient:
    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._transport = transport

    def _require_credentials(self) -> tuple[str, str]:
        client_id = self.settings.google_client_id
        client_secret = self.settings.google_client_secret
        if not client_id or not client_secret:
            raise TokenRefreshError("Missing Google OAuth configuration")
        return client_id, client_secret

    def _client(self) -> httpx.Client:
        return httpx.Client(transport=self._transport, timeout=self.settings.google_http_timeout)

    def build_authorization_url(self, state: str) -> str:
        if not self.settings.google_client_id:
            raise TokenRefreshError("Missing Google OAuth configuration")
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.settings.google_auth_url}?{urlencode(params)}"

    def _post_token(self, form: dict[str, str]) -> httpx.Response:
        with self._client() as client:
            return client.post(
                self.settings.google_token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )

    def _grant(self, form: dict[str, str]) -> TokenGrant:
        response = self._post_token(form)
        if response.is_success:
            return TokenGrant.from_payload(response.json())

        body = response.text
        if _error_code(body) == "invalid_grant":
            logger.warning("Google rejected the grant (invalid_grant)")
            raise ReconnectRequiredError(body)
        logger.error("Google token endpoint returned %s", response.status_code)
        raise TokenRefreshError(body or f"Token endpoint returned {response.status_code}")

    def exchange_code(self, code: str) -> TokenGrant:
        client_id, client_secret = self._require_credentials()
        return self._grant(
            {
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": self.settings.google_redirect_uri,
                "grant_type": "authorization_code",
            }
        )

    def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        client_id, client_secret = self._require_credentials()
        return self._grant(
            {
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )

    def fetch_userinfo(self, access_token: str) -> dict[str, Any]:
        with self._client() as client:
            response = client.get(
                self.settings.google_userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if not response.is_success:
            logger.warning("Userinfo lookup failed with %s", response.status_code)
            return {}
        return response.json()
