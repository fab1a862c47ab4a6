from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class GoogleAPIError(Exception):
    """Raised when a Google Business Profile endpoint responds with a non-2xx status."""

    def __init__(self, status_code: int, body: str, url: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Google API error {status_code}: {body}")

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == status.HTTP_401_UNAUTHORIZED


class TokenRefreshError(Exception):
    """Raised when Google refuses to mint a new access token."""


class ReconnectRequiredError(TokenRefreshError):
    """The stored grant is unusable; the user has to reconnect the Google account."""


class LLMProviderError(Exception):
    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider} error: {message}")


def error_body(error: str, message: str | None = None, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": error, "message": message or error}
    payload.update(extra)
    return payload


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        content = detail
    else:
        content = error_body(str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, message, details=errors),
    )


async def _reconnect_required_handler(request: Request, exc: ReconnectRequiredError) -> JSONResponse:
    logger.warning("Google grant unusable for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=error_body("invalid_grant", "Reconnect required", detail=str(exc)),
    )


async def _upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(ReconnectRequiredError, _reconnect_required_handler)
    app.add_exception_handler(TokenRefreshError, _upstream_error_handler)
    app.add_exception_handler(GoogleAPIError, _upstream_error_handler)
    app.add_exception_handler(httpx.HTTPError, _upstream_error_handler)
