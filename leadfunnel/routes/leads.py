# leadfunnel/routes/leads.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.schemas.responses import ErrorResponse, SubmissionResponse
from leadfunnel.services.client_identity import build_request_meta
from leadfunnel.services.submission import SubmissionOrchestrator, get_submission_orchestrator

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["leads"])

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


async def _read_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        # Left to the validator, which rejects anything that is not an object
        return None


@router.post(
    "/send",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Submit a lead from the contact form",
)
@router.post(
    "/lead",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Submit a lead (legacy path)",
)
async def submit_lead(
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_submission_orchestrator),
) -> SubmissionResponse:
    meta = build_request_meta(request.headers)
    raw = await _read_body(request)

    outcome = await orchestrator.submit(raw, meta)
    return SubmissionResponse(**outcome.to_response())


@router.options("/send", include_in_schema=False)
@router.options("/lead", include_in_schema=False)
async def submission_preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=PREFLIGHT_HEADERS)
