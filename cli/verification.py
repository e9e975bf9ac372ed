# cli/verification.py
"""
Core verification functions for a deployed lead funnel.
All functions return structured results: (success: bool, message: str, data: dict)
"""
from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from leadfunnel.core.config import Settings
from leadfunnel.services.sheets_sink import is_valid_sheet_url

SAMPLE_LEAD: Dict[str, Any] = {
    "fullName": "Verification Bot",
    "email": "verification@example.com",
    "company": "Lead Funnel CLI",
    "stage": "exploring",
    "needs": ["other"],
    "message": "Automated verification submission",
    "formType": "conversation",
    "user_language": "en",
    "page_section": "cli",
    "cta_label": "verify_lead_flow",
}


@dataclass
class VerificationResult:
    """Structured result from verification functions."""
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


def check_config(config: Settings) -> VerificationResult:
    """
    Validate sink configuration without touching the network.
    Missing e-mail credentials fail; a missing sheet URL only warns.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not config.resend_api_key:
        errors.append("RESEND_API_KEY is not set")
    if not config.admin_email:
        errors.append("ADMIN_EMAIL is not set")

    if not config.sheet_webapp_url:
        warnings.append("SHEET_WEBAPP_URL is not set; leads will only be e-mailed")
    elif not is_valid_sheet_url(config.sheet_webapp_url):
        errors.append("SHEET_WEBAPP_URL must be a script.google.com URL ending in /exec")

    if config.rate_limit_backend == "memory" and config.is_production:
        warnings.append("In-memory rate limiting is per process; use RATE_LIMIT_BACKEND=redis with several workers")

    data = {
        "errors": errors,
        "warnings": warnings,
        "cooldown_seconds": config.lead_cooldown_seconds,
        "rate_limit_backend": config.rate_limit_backend,
    }
    if errors:
        return VerificationResult(
            success=False,
            message=f"Configuration has {len(errors)} error(s)",
            data=data,
        )
    return VerificationResult(success=True, message="Configuration is valid", data=data)


async def check_api_health(api_url: str = "http://localhost:8000", timeout: float = 5.0) -> VerificationResult:
    """
    Check if API is running and the liveness endpoint responds.
    """
    url = f"{api_url}/api/health/live"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {str(e)}",
            data={'error': str(e), 'url': api_url}
        )
    except Exception as e:
        return VerificationResult(
            success=False,
            message=f"API health check error: {str(e)}",
            data={'error': str(e), 'traceback': traceback.format_exc()}
        )

    if response.status_code == 200:
        return VerificationResult(
            success=True,
            message="API health check passed",
            data={'status_code': response.status_code, 'url': url}
        )
    return VerificationResult(
        success=False,
        message=f"API health check failed with status {response.status_code}",
        data={'status_code': response.status_code, 'url': url}
    )


async def check_readiness(api_url: str = "http://localhost:8000", timeout: float = 5.0) -> VerificationResult:
    url = f"{api_url}/api/health/ready"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
        body = response.json()
    except (httpx.RequestError, ValueError) as e:
        return VerificationResult(success=False, message=f"Readiness check error: {e}", data={'url': url})

    return VerificationResult(
        success=response.status_code == 200,
        message=f"API is {body.get('status', 'unknown')}",
        data={'checks': body.get('checks', {}), 'url': url},
    )


async def check_lead_flow(
    api_url: str = "http://localhost:8000",
    live: bool = False,
    timeout: float = 30.0,
    lead: Optional[Dict[str, Any]] = None,
) -> VerificationResult:
    """
    Submit a sample lead.

    By default the honeypot field is filled, so the API answers like a real
    submission without calling any sink. ``live=True`` sends a real lead.
    """
    payload = dict(lead or SAMPLE_LEAD)
    if not live:
        payload["website"] = "https://verification.invalid"

    url = f"{api_url}/api/send"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"Lead submission failed: {e}",
            data={'url': url},
        )

    try:
        body = response.json()
    except ValueError:
        body = {}

    if response.status_code == 200 and body.get("success"):
        return VerificationResult(
            success=True,
            message="Lead accepted" if live else "Lead accepted (honeypot, no sinks called)",
            data={'details': body.get('details', {}), 'live': live},
        )
    if response.status_code == 429:
        return VerificationResult(
            success=False,
            message="Rate limited; wait for the cooldown and retry",
            data={'status_code': 429},
        )
    return VerificationResult(
        success=False,
        message=f"Lead submission returned {response.status_code}",
        data={'status_code': response.status_code, 'body': body},
    )
