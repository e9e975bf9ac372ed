# leadfunnel/main.py
from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from leadfunnel import __version__
from leadfunnel.core.config import settings
from leadfunnel.core.exceptions import BaseAPIException
from leadfunnel.core.logging import configure_structlog, get_structlog_logger
from leadfunnel.middleware.logging import LoggingMiddleware
from leadfunnel.middleware.request_id import RequestIdMiddleware
from leadfunnel.routes import health, leads, site
from leadfunnel.services.sheets_sink import is_valid_sheet_url


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger = get_structlog_logger(__name__)

    logger.info("application.starting", environment=settings.environment)

    if not settings.resend_api_key:
        logger.error("email.misconfigured", reason="RESEND_API_KEY not set")
    if not settings.sheet_webapp_url:
        logger.warning("sheets.not_configured")
    elif not is_valid_sheet_url(settings.sheet_webapp_url):
        logger.error("sheets.misconfigured", reason="invalid web app URL")

    if settings.rate_limit_backend == "redis":
        from leadfunnel.services.redis import init_redis_pool

        try:
            await init_redis_pool()
        except Exception as e:
            logger.error("redis.connection_failed", error=str(e))
            if settings.is_production:
                raise

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            integrations=[
                AsyncioIntegration(),
                FastApiIntegration(),
                StarletteIntegration(),
            ],
            traces_sample_rate=1.0 if settings.is_development else 0.1,
            send_default_pii=False,
        )
        logger.info("sentry.initialized")

    logger.info("application.started")
    yield

    logger.info("application.shutting_down")

    if settings.rate_limit_backend == "redis":
        from leadfunnel.services.redis import close_redis_pool

        await close_redis_pool()

    logger.info("application.shutdown_complete")


# Configure logging before creating app
configure_structlog()
logger = get_structlog_logger(__name__)

app = FastAPI(
    title="Lead Funnel API",
    version=__version__,
    description="Contact form intake for the agency marketing site",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins(),
    allow_credentials=False,
    allow_methods=settings.methods(),
    allow_headers=settings.headers(),
    expose_headers=["X-Request-ID", "X-Response-Time"],
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.hosts())
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(BaseAPIException)
async def api_exception_handler(request: Request, exc: BaseAPIException):
    """Handle custom API exceptions."""
    logger.warning(
        "api.exception",
        status_code=exc.status_code,
        code=exc.code,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI parameter validation errors."""
    details = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", []) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        details.setdefault(field, []).append(error.get("msg", "Validation error"))

    logger.warning(
        "validation.error",
        path=request.url.path,
        method=request.method,
        fields=sorted(details),
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    error_id = f"err_{int(time.time())}_{uuid.uuid4().hex[:8]}"

    logger.error(
        "unhandled.exception",
        error_id=error_id,
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    if settings.is_development:
        message = f"Internal server error: {exc}"
    else:
        message = "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "error_id": error_id},
        headers={"X-Error-ID": error_id},
    )


app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(leads.router, prefix=settings.api_prefix, tags=["leads"])
app.include_router(site.router, prefix=settings.api_prefix, tags=["site"])

if not settings.is_testing:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Lead Funnel API",
        "version": app.version,
        "environment": settings.environment,
        "docs": "/docs" if settings.is_development else None,
        "health": f"{settings.api_prefix}/health",
    }


logger.info("application.configured", environment=settings.environment)
