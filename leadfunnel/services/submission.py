# leadfunnel/services/submission.py
"""
Lead submission pipeline.

received -> rate-checked -> spam-checked -> validated -> dispatched -> reconciled

Both sinks run concurrently and are always awaited to completion. The lead
is accepted when at least one of them delivered it; only when neither did is
the request failed, with sink details kept in the server log.
"""
from __future__ import annotations

import asyncio
import math
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from leadfunnel.core.config import Settings, settings
from leadfunnel.core.exceptions import LeadValidationError, RateLimitError, SubmissionFailedError
from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.schemas.submission import LeadSubmission
from leadfunnel.services.client_identity import RequestMeta
from leadfunnel.services.email_sink import EmailSettings, ResendEmailSink
from leadfunnel.services.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    RedisRateLimitStore,
)
from leadfunnel.services.redis import get_redis_client
from leadfunnel.services.sheets_sink import SheetSettings, SpreadsheetLeadSink
from leadfunnel.services.sinks import Sink, SinkOutcome, SinkStatus
from leadfunnel.services.validation import is_honeypot_tripped, validate_submission

logger = get_structlog_logger(__name__)

SUCCESS_MESSAGE = "Lead submitted successfully"


class SubmissionStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    SPAM_SUPPRESSED = "spam_suppressed"


@dataclass(frozen=True)
class SubmissionOutcome:
    status: SubmissionStatus
    email: Optional[SinkOutcome] = None
    sheets: Optional[SinkOutcome] = None

    @property
    def email_delivered(self) -> bool:
        return self.email is not None and self.email.delivered

    @property
    def sheets_delivered(self) -> bool:
        return self.sheets is not None and self.sheets.delivered

    def to_response(self) -> Dict[str, Any]:
        email_id = self.email.message_id if self.email_delivered else None
        return {
            "success": True,
            "message": SUCCESS_MESSAGE,
            "emailId": email_id,
            "sheetsSaved": self.sheets_delivered,
            "details": {"email": self.email_delivered, "sheets": self.sheets_delivered},
        }


async def settle_all(
    sinks: Sequence[Sink],
    lead: LeadSubmission,
    meta: RequestMeta,
) -> List[SinkOutcome]:
    """Run every sink to completion; an escaped exception becomes a failed outcome."""
    results = await asyncio.gather(
        *(sink.deliver(lead, meta) for sink in sinks),
        return_exceptions=True,
    )

    outcomes: List[SinkOutcome] = []
    for sink, result in zip(sinks, results):
        if isinstance(result, SinkOutcome):
            outcomes.append(result)
        elif isinstance(result, asyncio.CancelledError):
            raise result
        else:
            logger.error(
                "sink.unhandled_exception",
                sink=sink.name,
                error_type=type(result).__name__,
                error=str(result)[:200],
            )
            outcomes.append(
                SinkOutcome.failure(
                    sink.name,
                    SinkStatus.REMOTE_FAILURE,
                    f"Unhandled {type(result).__name__}",
                )
            )
    return outcomes


def decoy_outcome(sink: Sink) -> SinkOutcome:
    """What a genuine delivery through ``sink`` would report, without calling it."""
    if sink.ready:
        return SinkOutcome.success(sink.name, message_id=str(uuid.uuid4()), http_status=200)
    return SinkOutcome.failure(sink.name, SinkStatus.NOT_CONFIGURED, "Not configured")


def reconcile(email: SinkOutcome, sheets: SinkOutcome) -> SubmissionOutcome:
    """Any delivery wins; raise only when nothing delivered the lead."""
    outcomes = (email, sheets)
    if not any(outcome.delivered for outcome in outcomes):
        raise SubmissionFailedError()

    all_delivered = all(outcome.delivered or outcome.skipped for outcome in outcomes)
    status = SubmissionStatus.SUCCESS if all_delivered else SubmissionStatus.PARTIAL_SUCCESS
    return SubmissionOutcome(status=status, email=email, sheets=sheets)


class SubmissionOrchestrator:
    def __init__(
        self,
        *,
        rate_limiter: RateLimiter,
        email_sink: Sink,
        lead_store_sink: Sink,
    ):
        self.rate_limiter = rate_limiter
        self.email_sink = email_sink
        self.lead_store_sink = lead_store_sink

    async def submit(self, raw: Any, meta: RequestMeta) -> SubmissionOutcome:
        log = logger.bind(client_id=meta.client_id[:50])

        if not await self.rate_limiter.allow(meta.client_id):
            raise RateLimitError(retry_after=math.ceil(self.rate_limiter.cooldown_seconds))

        if is_honeypot_tripped(raw):
            log.info("submission.spam_suppressed")
            # Mirror the configured sinks so the reply matches a genuine lead
            mirrored = reconcile(decoy_outcome(self.email_sink), decoy_outcome(self.lead_store_sink))
            return SubmissionOutcome(
                status=SubmissionStatus.SPAM_SUPPRESSED,
                email=mirrored.email,
                sheets=mirrored.sheets,
            )

        try:
            lead = validate_submission(raw, meta)
        except LeadValidationError as e:
            log.warning(
                "submission.validation_failed",
                fields=sorted(e.field_errors),
            )
            raise

        log = log.bind(intent=lead.intent, language=lead.language)
        log.info("submission.validated", needs=list(lead.needs))

        email, sheets = await settle_all((self.email_sink, self.lead_store_sink), lead, meta)
        for outcome in (email, sheets):
            log.info(
                "submission.sink_result",
                sink=outcome.sink,
                status=outcome.status.value,
                http_status=outcome.http_status,
                detail=outcome.detail,
            )

        try:
            result = reconcile(email, sheets)
        except SubmissionFailedError:
            log.error(
                "submission.failed",
                email_status=email.status.value,
                email_detail=email.detail,
                sheets_status=sheets.status.value,
                sheets_detail=sheets.detail,
            )
            raise

        log.info(
            "submission.accepted",
            status=result.status.value,
            email=result.email_delivered,
            sheets=result.sheets_delivered,
        )
        return result


def build_rate_limit_store(config: Settings) -> RateLimitStore:
    if config.rate_limit_backend == "redis":
        return RedisRateLimitStore(get_redis_client)
    return InMemoryRateLimitStore(max_entries=config.rate_limit_max_entries)


def build_orchestrator(config: Settings) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(
        rate_limiter=RateLimiter(
            build_rate_limit_store(config),
            cooldown_seconds=config.lead_cooldown_seconds,
        ),
        email_sink=ResendEmailSink(EmailSettings.from_settings(config)),
        lead_store_sink=SpreadsheetLeadSink(SheetSettings.from_settings(config)),
    )


_orchestrator: Optional[SubmissionOrchestrator] = None


def get_submission_orchestrator() -> SubmissionOrchestrator:
    """FastAPI dependency returning the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator(settings)
    return _orchestrator


def reset_submission_orchestrator() -> None:
    global _orchestrator
    _orchestrator = None
