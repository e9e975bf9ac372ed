# leadfunnel/middleware/request_id.py
from __future__ import annotations

import re
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from leadfunnel.core.logging import set_request_id

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and set request IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = self._get_or_create_request_id(request)
        request.state.request_id = request_id

        set_request_id(None)
        set_request_id(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    def _get_or_create_request_id(self, request: Request) -> str:
        """Extract request ID from headers or generate new one."""
        for header in ("X-Request-ID", "X-Correlation-ID"):
            candidate = request.headers.get(header)
            # Client supplied, so only echoed back when it looks like an id
            if candidate and _SAFE_REQUEST_ID.match(candidate):
                return candidate

        # W3C Trace Context: 00-<32 hex trace id>-...
        trace_id = request.headers.get("traceparent")
        if trace_id and trace_id.startswith("00-") and len(trace_id) >= 35:
            return trace_id[3:35]

        return str(uuid.uuid4())
