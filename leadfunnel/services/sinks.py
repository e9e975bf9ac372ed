from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from leadfunnel.schemas.submission import LeadSubmission
from leadfunnel.services.client_identity import RequestMeta


class SinkStatus(str, Enum):
    DELIVERED = "delivered"
    NOT_CONFIGURED = "not_configured"
    MISCONFIGURED = "misconfigured"
    REMOTE_FAILURE = "remote_failure"


@dataclass(frozen=True)
class SinkOutcome:
    sink: str
    status: SinkStatus
    message_id: Optional[str] = None
    http_status: Optional[int] = None
    detail: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status is SinkStatus.DELIVERED

    @property
    def skipped(self) -> bool:
        return self.status is SinkStatus.NOT_CONFIGURED

    @classmethod
    def success(cls, sink: str, message_id: Optional[str] = None, http_status: Optional[int] = None) -> "SinkOutcome":
        return cls(sink=sink, status=SinkStatus.DELIVERED, message_id=message_id, http_status=http_status)

    @classmethod
    def failure(
        cls,
        sink: str,
        status: SinkStatus,
        detail: str,
        http_status: Optional[int] = None,
    ) -> "SinkOutcome":
        return cls(sink=sink, status=status, detail=detail[:200], http_status=http_status)


class Sink(Protocol):
    """An external system that records or announces a lead. Never raises."""

    name: str

    @property
    def ready(self) -> bool:
        """Whether a delivery would be attempted under the current configuration."""
        ...

    async def deliver(self, lead: LeadSubmission, meta: RequestMeta) -> SinkOutcome:
        ...
