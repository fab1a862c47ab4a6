from __future__ import annotations

import logging
from typing import Sequence

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .errors import error_body

logger = logging.getLogger(__name__)

ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"
ALLOWED_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answer every OPTIONS request with 200, including ones that are not full CORS preflights."""

    def __init__(self, app: ASGIApp, allow_origins: Sequence[str]) -> None:
        super().__init__(app)
        self.allow_origins = list(allow_origins) or ["*"]

    def _allow_origin(self, request: Request) -> str:
        origin = request.headers.get("origin")
        if "*" in self.allow_origins:
            return "*"
        if origin in self.allow_origins:
            return origin
        return self.allow_origins[0]

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "OPTIONS":
            return await call_next(request)
        return Response(
            status_code=status.HTTP_200_OK,
            content="ok",
            headers={
                "Access-Control-Allow-Origin": self._allow_origin(request),
                "Access-Control-Allow-Methods": ALLOWED_METHODS,
                "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            },
        )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Render errors no exception handler claimed as a JSON 500 carrying the error text."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(str(exc) or exc.__class__.__name__),
            )
