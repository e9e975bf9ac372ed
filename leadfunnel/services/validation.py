"""Honeypot check and strict validation of raw submission bodies."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from leadfunnel.core.exceptions import LeadValidationError
from leadfunnel.schemas.submission import HONEYPOT_FIELD, LeadSubmission, LeadSubmissionForm
from leadfunnel.services.client_identity import RequestMeta


def is_honeypot_tripped(raw: Any) -> bool:
    """
    True when the hidden ``website`` field carries any value.

    Humans never see the field, so whitespace counts as filled too.
    """
    if not isinstance(raw, dict):
        return False
    return bool(raw.get(HONEYPOT_FIELD))


def collect_field_errors(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Group pydantic errors by top-level field name."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else "body"
        if error.get("type") == "extra_forbidden":
            message = "Unrecognized field"
        else:
            message = error.get("msg", "Invalid value")
        messages = errors.setdefault(field, [])
        if message not in messages:
            messages.append(message)
    return errors


def validate_submission(raw: Any, meta: Optional[RequestMeta] = None) -> LeadSubmission:
    """
    Validate an untrusted body and return the normalized lead.

    Raises LeadValidationError with field-keyed messages on failure.
    """
    if not isinstance(raw, dict):
        raise LeadValidationError({"body": ["Expected a JSON object"]})

    try:
        form = LeadSubmissionForm.model_validate(raw)
    except PydanticValidationError as e:
        raise LeadValidationError(collect_field_errors(e))

    return LeadSubmission.from_form(
        form,
        user_agent=meta.user_agent if meta else None,
        country=meta.country if meta else None,
    )
