"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.db import ensure_tables
from apps.api.routes import admin, blocks, health, pages, public, sites, templates
from apps.api.services.auth import auth_middleware
from apps.api.services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from apps.api.services.tenant_guard import TenantRequiredError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# CORS: allow only specified origins (no wildcard).
# Env: CORS_ALLOW_ORIGINS="https://app.example.com,http://localhost:3000" (comma-separated).
# If not set, default to localhost only for local dev.
CORS_DEFAULT_ORIGINS = ["http://localhost:3000"]
_cors_origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
CORS_ORIGINS = (
    [o.strip() for o in _cors_origins_raw.split(",") if o.strip()]
    if _cors_origins_raw
    else CORS_DEFAULT_ORIGINS
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure tables exist on startup (SQLite/dev; Postgres is migrated by Alembic)."""
    ensure_tables()
    yield


app = FastAPI(
    title="Site Builder Core API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allow_origins=CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"])
app.middleware("http")(auth_middleware)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": exc.message, "field": exc.field})


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(TenantRequiredError)
async def tenant_required_handler(request: Request, exc: TenantRequiredError) -> JSONResponse:
    logger.warning("Tenant missing at repo boundary path=%s", request.url.path)
    return JSONResponse(status_code=401, content={"detail": "Tenant ID required"})


app.include_router(health.router, tags=["health"])
app.include_router(sites.router, prefix="/sites", tags=["sites"])
app.include_router(pages.router, tags=["pages"])
app.include_router(blocks.router, prefix="/blocks", tags=["blocks"])
app.include_router(templates.router, prefix="/templates", tags=["templates"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(public.router, tags=["public"])

if (os.getenv("ENV") or os.getenv("ENVIRONMENT") or "").lower() == "test":
    from apps.api.routes import debug

    app.include_router(debug.router, prefix="/debug", tags=["debug"])
