"""
Lead store backed by a spreadsheet automation web app.

The sheet has a fixed 16-column header row. Timestamp and Status_Internal are
filled in by the automation itself; every other column is read from the
payload key listed next to it. Reordering SHEET_COLUMNS requires migrating
the header row of the sheet.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import aiohttp

from leadfunnel.core.config import Settings
from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.schemas.submission import LeadSubmission
from leadfunnel.services.client_identity import RequestMeta
from leadfunnel.services.sinks import SinkOutcome, SinkStatus

logger = get_structlog_logger(__name__)

SINK_NAME = "sheets"

SHEET_URL_HOST = "script.google.com"
SHEET_URL_SUFFIX = "/exec"

SHEET_COLUMNS: Tuple[Tuple[str, Optional[str]], ...] = (
    ("Timestamp", None),
    ("Name", "name"),
    ("Email", "email"),
    ("Company", "company"),
    ("Intent", "intent"),
    ("Stage", "stage"),
    ("Needs", "needs"),
    ("Message", "message"),
    ("Source", "page_section"),
    ("UTM_Content", "cta_label"),
    ("Status_Internal", None),
    ("UTM_Source", "utm_source"),
    ("UTM_Medium", "utm_medium"),
    ("UTM_Campaign", "utm_campaign"),
    ("User_Agent", "user_agent"),
    ("Country", "country"),
)


def is_valid_sheet_url(url: str) -> bool:
    return SHEET_URL_HOST in url and url.endswith(SHEET_URL_SUFFIX)


def build_sheet_payload(lead: LeadSubmission, meta: Optional[RequestMeta] = None) -> Dict[str, str]:
    values: Dict[str, Optional[str]] = {
        "name": lead.full_name,
        "email": lead.email,
        "company": lead.company,
        "intent": lead.intent,
        "stage": lead.stage,
        "needs": lead.needs_display,
        "message": lead.message,
        "page_section": lead.page_section,
        "cta_label": lead.cta_label,
        "utm_source": lead.utm_source,
        "utm_medium": lead.utm_medium,
        "utm_campaign": lead.utm_campaign,
        "user_agent": lead.user_agent or (meta.user_agent if meta else None),
        "country": lead.country or (meta.country if meta else None),
    }
    return {key: values[key] or "" for _, key in SHEET_COLUMNS if key is not None}


@dataclass(frozen=True)
class SheetSettings:
    webapp_url: Optional[str]
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetSettings":
        return cls(
            webapp_url=settings.sheet_webapp_url,
            timeout_seconds=settings.sink_timeout_seconds,
        )


class SpreadsheetLeadSink:
    """Appends one row per lead. Optional: an unset URL is a benign skip."""

    name = SINK_NAME

    def __init__(
        self,
        config: SheetSettings,
        session_factory: Callable[..., Any] = aiohttp.ClientSession,
    ):
        self.config = config
        self._session_factory = session_factory

    @property
    def ready(self) -> bool:
        url = self.config.webapp_url
        return bool(url) and is_valid_sheet_url(url)

    async def deliver(self, lead: LeadSubmission, meta: RequestMeta) -> SinkOutcome:
        url = self.config.webapp_url
        if not url:
            logger.warning("sheets.not_configured")
            return SinkOutcome.failure(SINK_NAME, SinkStatus.NOT_CONFIGURED, "Not configured")

        if not is_valid_sheet_url(url):
            logger.error("sheets.misconfigured", reason="invalid_url_shape")
            return SinkOutcome.failure(SINK_NAME, SinkStatus.MISCONFIGURED, "Invalid URL")

        payload = build_sheet_payload(lead, meta)

        try:
            async with self._session_factory(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            ) as session:
                async with session.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                ) as response:
                    status = response.status
                    body_text = await response.text()
        except asyncio.TimeoutError:
            return SinkOutcome.failure(SINK_NAME, SinkStatus.REMOTE_FAILURE, "Request timeout")
        except aiohttp.ClientError as e:
            return SinkOutcome.failure(SINK_NAME, SinkStatus.REMOTE_FAILURE, f"Client error: {str(e)[:200]}")
        except Exception as e:
            return SinkOutcome.failure(SINK_NAME, SinkStatus.REMOTE_FAILURE, f"Unexpected error: {type(e).__name__}")

        if not 200 <= status < 300:
            return SinkOutcome.failure(
                SINK_NAME,
                SinkStatus.REMOTE_FAILURE,
                f"HTTP {status}: {body_text[:200]}",
                http_status=status,
            )

        try:
            result = json.loads(body_text)
        except ValueError:
            result = None
        if not isinstance(result, dict):
            return SinkOutcome.failure(
                SINK_NAME,
                SinkStatus.REMOTE_FAILURE,
                "Malformed response body",
                http_status=status,
            )
        if result.get("success") is False:
            return SinkOutcome.failure(
                SINK_NAME,
                SinkStatus.REMOTE_FAILURE,
                str(result.get("error") or "Automation reported failure"),
                http_status=status,
            )

        logger.info("sheets.saved", http_status=status)
        return SinkOutcome.success(SINK_NAME, http_status=status)
