from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from compliance_tracker.core.config import settings
from compliance_tracker.core.errors import (
    TrackerError,
    global_exception_handler,
    http_exception_handler,
    tracker_error_handler,
)
from compliance_tracker.middleware.security import (
    RequestBodySizeLimitMiddleware,
    SecurityHeadersMiddleware,
)

import compliance_tracker.models  # noqa: F401  registers every model on Base.metadata

from compliance_tracker.auth.router import router as auth_router
from compliance_tracker.modules.compliance.router import router as compliance_router
from compliance_tracker.modules.status.router import router as status_router
from compliance_tracker.core.sentry import init_sentry

# ── Sentry: must be initialised before the FastAPI app is created ───────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting compliance tracker API", env=settings.APP_ENV, timezone=settings.TIMEZONE)
    yield
    logger.info("Shutting down compliance tracker API")

    from compliance_tracker.core.database import engine

    await engine.dispose()


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="Compliance Tracker API",
    description="Monthly regulatory compliance tracking per client, with deadline cascades and period locking.",
    version="0.1.0",
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_exception_handler(TrackerError, tracker_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)
# Security middleware (added last = outermost = first to see requests, last to touch responses)
app.add_middleware(
    RequestBodySizeLimitMiddleware,  # type: ignore[arg-type]
    max_bytes=settings.MAX_REQUEST_BODY_BYTES,
)
app.add_middleware(
    SecurityHeadersMiddleware,  # type: ignore[arg-type]
    is_production=_is_prod,
)


# ── X-API-Version response header ────────────────────────────────────────────


@app.middleware("http")
async def add_version_header(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-API-Version"] = "v1"
    return response


# ── Health check (root-level, not under /v1) ─────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Probe the database; the tracker has no other backing services."""
    from compliance_tracker.core.database import async_session_factory

    checks: dict[str, dict] = {}
    try:
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy"}
    except Exception as exc:
        logger.warning("health_check_failed", check="database", error=str(exc))
        checks["database"] = {"status": "unhealthy", "error": str(exc)}

    overall = (
        "healthy"
        if all(c["status"] == "healthy" for c in checks.values())
        else "degraded"
    )
    return {"status": overall, "service": "compliance-tracker-api", "checks": checks}


# ── /v1 versioned router ──────────────────────────────────────────────────────

api_v1 = APIRouter(prefix="/v1")

api_v1.include_router(auth_router)
api_v1.include_router(status_router)
api_v1.include_router(compliance_router)

app.include_router(api_v1)
