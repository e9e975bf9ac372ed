# leadfunnel/middleware/logging.py
from __future__ import annotations

import time
from typing import Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.services.client_identity import extract_client_identifier

logger = get_structlog_logger(__name__)

QUIET_PATHS = ("/api/health/live", "/api/health/ready", "/metrics")

SENSITIVE_HEADERS = (
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-secret",
    "password",
    "token",
    "secret",
)


def filter_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Filter sensitive headers from logs."""
    filtered = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_HEADERS):
            filtered[key] = "[REDACTED]"
        else:
            filtered[key] = value
    return filtered


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        request_id = getattr(request.state, "request_id", None)

        self._log_request(request, request_id)

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_exception(request, e, start_time, request_id)
            raise

        response_time = time.perf_counter() - start_time
        response.headers["X-Response-Time"] = f"{response_time:.3f}"

        self._log_response(request, response, response_time, request_id)
        return response

    def _log_request(self, request: Request, request_id: Optional[str]) -> None:
        if request.url.path in QUIET_PATHS:
            return

        logger.info(
            "request.received",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_id=extract_client_identifier(request.headers),
            user_agent=request.headers.get("user-agent", "unknown"),
            content_length=request.headers.get("content-length", "0"),
            headers=filter_headers(request.headers),
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        response_time: float,
        request_id: Optional[str],
    ) -> None:
        if request.url.path in QUIET_PATHS:
            return

        status_code = response.status_code
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "response_time_ms": response_time * 1000,
        }

        if 400 <= status_code < 500:
            log_data["error_type"] = "client_error"
            logger.warning("response.sent", **log_data)
        elif status_code >= 500:
            log_data["error_type"] = "server_error"
            logger.warning("response.sent", **log_data)
        else:
            logger.info("response.sent", **log_data)

    def _log_exception(
        self,
        request: Request,
        exception: Exception,
        start_time: float,
        request_id: Optional[str],
    ) -> None:
        logger.error(
            "request.exception",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            response_time_ms=(time.perf_counter() - start_time) * 1000,
            exception_type=type(exception).__name__,
            exc_info=True,
        )
