# leadfunnel/routes/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, List

import psutil
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from leadfunnel import __version__
from leadfunnel.core.config import settings
from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.services.sheets_sink import is_valid_sheet_url

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    version: str
    timestamp: str
    uptime: float
    checks: Dict[str, Dict[str, str]]
    dependencies: List[str]


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_email_sink() -> Dict[str, str]:
    """The notification e-mail cannot be sent without an API key."""
    if not settings.resend_api_key:
        return {"status": "unhealthy", "error": "RESEND_API_KEY not configured"}
    return {"status": "healthy", "provider": "resend"}


def check_lead_store_sink() -> Dict[str, str]:
    url = settings.sheet_webapp_url
    if not url:
        return {"status": "skipped", "reason": "not configured"}
    if not is_valid_sheet_url(url):
        return {"status": "unhealthy", "error": "invalid web app URL"}
    return {"status": "healthy"}


async def check_redis() -> Dict[str, str]:
    if settings.rate_limit_backend != "redis":
        return {"status": "skipped", "reason": "in-memory rate limiting"}

    from leadfunnel.services.redis import health_check as redis_health_check

    result = await redis_health_check()
    if result.get("status") == "healthy":
        return {
            "status": "healthy",
            "response_time_ms": f"{result.get('response_time_ms', 0):.2f}",
            "version": str(result.get("version", "unknown")),
        }
    return {"status": "unhealthy", "error": str(result.get("error", "Unknown error"))}


async def collect_checks() -> Dict[str, Dict[str, str]]:
    return {
        "email": check_email_sink(),
        "sheets": check_lead_store_sink(),
        "redis": await check_redis(),
    }


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Comprehensive health check endpoint."""
    start = time.perf_counter()
    checks = await collect_checks()

    unhealthy = [name for name, result in checks.items() if result["status"] == "unhealthy"]
    if not unhealthy:
        overall_status = "healthy"
    elif len(unhealthy) == 1 and unhealthy[0] == "sheets":
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    process = psutil.Process()
    dependencies = ["resend"]
    if settings.sheet_webapp_url:
        dependencies.append("google-apps-script")
    if settings.rate_limit_backend == "redis":
        dependencies.append("redis")
    if settings.sentry_dsn:
        dependencies.append("sentry")

    response = HealthCheckResponse(
        status=overall_status,
        service="leadfunnel_api",
        environment=settings.environment,
        version=__version__,
        timestamp=_utcnow(),
        uptime=time.time() - process.create_time(),
        checks=checks,
        dependencies=dependencies,
    )

    log = logger.info if overall_status == "healthy" else logger.warning
    log(
        "health.check",
        status=overall_status,
        response_time_ms=(time.perf_counter() - start) * 1000,
        checks=checks,
    )
    return response


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness():
    """Simple liveness check for Kubernetes/containers."""
    return {
        "status": "alive",
        "timestamp": _utcnow(),
    }


@router.get("/health/ready")
async def readiness():
    """Ready once the e-mail sink is usable and optional backends are sane."""
    checks = await collect_checks()
    is_ready = all(result["status"] in ("healthy", "skipped") for result in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "timestamp": _utcnow(),
            "checks": {name: result["status"] for name, result in checks.items()},
        },
    )


@router.get("/health/metrics")
async def health_metrics():
    """Return health metrics in Prometheus format."""
    process = psutil.Process()
    memory_info = process.memory_info()

    metrics = [
        "# HELP api_health_status API health status (1=healthy, 0=unhealthy)",
        "# TYPE api_health_status gauge",
        f"api_health_status{{service=\"leadfunnel_api\",environment=\"{settings.environment}\"}} 1",
        "",
        "# HELP api_memory_usage_bytes Memory usage in bytes",
        "# TYPE api_memory_usage_bytes gauge",
        f"api_memory_usage_bytes{{service=\"leadfunnel_api\"}} {memory_info.rss}",
        "",
        "# HELP api_thread_count Number of threads",
        "# TYPE api_thread_count gauge",
        f"api_thread_count{{service=\"leadfunnel_api\"}} {process.num_threads()}",
        "",
        "# HELP api_uptime_seconds Service uptime in seconds",
        "# TYPE api_uptime_seconds gauge",
        f"api_uptime_seconds{{service=\"leadfunnel_api\"}} {time.time() - process.create_time()}",
    ]

    return Response(content="\n".join(metrics), media_type="text/plain")
