# leadfunnel/services/__init__.py
"""
Business logic services organized by domain functionality.
"""

from leadfunnel.services.client_identity import RequestMeta, build_request_meta
from leadfunnel.services.rate_limiter import InMemoryRateLimitStore, RateLimiter, RedisRateLimitStore
from leadfunnel.services.sinks import Sink, SinkOutcome, SinkStatus
from leadfunnel.services.submission import (
    SubmissionOrchestrator,
    SubmissionOutcome,
    SubmissionStatus,
    build_orchestrator,
    get_submission_orchestrator,
)
from leadfunnel.services.validation import is_honeypot_tripped, validate_submission

__all__ = [
    # Client identity
    "RequestMeta",
    "build_request_meta",
    # Rate limiting
    "InMemoryRateLimitStore",
    "RateLimiter",
    "RedisRateLimitStore",
    # Sinks
    "Sink",
    "SinkOutcome",
    "SinkStatus",
    # Submission pipeline
    "SubmissionOrchestrator",
    "SubmissionOutcome",
    "SubmissionStatus",
    "build_orchestrator",
    "get_submission_orchestrator",
    # Validation
    "is_honeypot_tripped",
    "validate_submission",
]
