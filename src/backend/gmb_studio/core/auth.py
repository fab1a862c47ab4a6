from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import HTTPException, status
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import BaseModel, Field

from gmb_studio.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    """Normalized view of the session token claims for downstream handlers."""

    subject: str = Field(..., description="User identifier from the `sub` claim.")
    email: str | None = Field(default=None, description="Email claim when present.")
    role: str | None = Field(default=None, description="Role claim issued by the auth provider.")
    claims: dict[str, Any] = Field(default_factory=dict, description="Raw token claims.")


def unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": message, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


class TokenVerifier:
    """Verifies the HS256 session JWTs issued to dashboard users."""

    def __init__(self, settings: Settings) -> None:
        if not settings.auth_jwt_secret:
            raise RuntimeError("Token verifier requires AUTH_JWT_SECRET to be configured.")
        self.settings = settings

    def verify(self, token: str) -> AuthUser:
        if not token or token.count(".") != 2:
            raise unauthorized("Invalid or expired token")

        options = {"verify_aud": bool(self.settings.auth_jwt_audience)}
        try:
            claims = jwt.decode(
                token,
                self.settings.auth_jwt_secret,
                algorithms=self.settings.auth_jwt_algorithms,
                audience=self.settings.auth_jwt_audience,
                options=options,
            )
        except ExpiredSignatureError as exc:
            raise unauthorized("Invalid or expired token") from exc
        except JWTError as exc:
            logger.debug("Session token verification failed: %s", exc)
            raise unauthorized("Invalid or expired token") from exc

        subject = str(claims.get("sub") or "")
        if not subject:
            raise unauthorized("Invalid or expired token")

        return AuthUser(
            subject=subject,
            email=claims.get("email"),
            role=claims.get("role"),
            claims=claims,
        )


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    settings = get_settings()
    if not settings.auth_jwt_secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication not configured.",
        )
    return TokenVerifier(settings)


def verify_bearer_token(token: str) -> AuthUser:
    verifier = get_token_verifier()
    return verifier.verify(token)
