from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional


class BaseAPIException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        """Client-facing body: the message plus field details when present."""
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class LeadValidationError(BaseAPIException):
    """Submission failed schema validation; details are keyed by field name."""

    def __init__(
        self,
        field_errors: Mapping[str, List[str]],
        message: str = "Invalid form data",
        **kwargs,
    ):
        self.field_errors = {field: list(msgs) for field, msgs in field_errors.items()}
        super().__init__(message, status_code=400, details=self.field_errors, **kwargs)


class RateLimitError(BaseAPIException):
    """Rate limit exceeded."""
    def __init__(
        self,
        message: str = "Too many requests. Please wait before sending another email.",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(message, status_code=429, headers=headers, **kwargs)
        self.retry_after = retry_after


class SubmissionFailedError(BaseAPIException):
    """No sink accepted the lead."""
    def __init__(self, message: str = "Failed to process submission. Please try again.", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class ServiceUnavailableError(BaseAPIException):
    """Service unavailable."""
    def __init__(self, message: str = "Service unavailable", **kwargs):
        super().__init__(message, status_code=503, **kwargs)
