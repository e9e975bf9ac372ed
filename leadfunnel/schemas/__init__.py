# leadfunnel/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from leadfunnel.schemas.responses import ErrorResponse, SiteConfigResponse, SubmissionResponse
from leadfunnel.schemas.submission import LeadSubmission, LeadSubmissionForm

__all__ = [
    "ErrorResponse",
    "LeadSubmission",
    "LeadSubmissionForm",
    "SiteConfigResponse",
    "SubmissionResponse",
]
