from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gmb_studio.api.router import api_router
from gmb_studio.core.config import get_settings
from gmb_studio.core.errors import register_exception_handlers
from gmb_studio.core.logging import configure_logging
from gmb_studio.core.middleware import PreflightMiddleware, UnhandledErrorMiddleware

configure_logging()
settings = get_settings()

docs_url = "/docs" if settings.enable_swagger_ui else None
redoc_url = "/redoc" if settings.enable_redoc else None

app = FastAPI(
    title="GMB Studio API",
    version="0.1.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url="/openapi.json",
)

# Added first so they run inside CORS and their responses get CORS headers
app.add_middleware(UnhandledErrorMiddleware)
app.add_middleware(PreflightMiddleware, allow_origins=settings.cors_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=f"/api/{settings.api_version}")


@app.get("/healthz", tags=["health"], include_in_schema=False)
def healthz() -> dict[str, str]:
    return {"status": "ok"}
