# tests/conftest.py
import os

os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_FORMAT", "console")

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402

from leadfunnel.schemas.submission import LeadSubmission  # noqa: E402
from leadfunnel.services.client_identity import RequestMeta  # noqa: E402
from leadfunnel.services.rate_limiter import InMemoryRateLimitStore, RateLimiter  # noqa: E402
from leadfunnel.services.sinks import SinkOutcome  # noqa: E402
from leadfunnel.services.submission import SubmissionOrchestrator  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    """Stands in for a real sink; returns a fixed outcome or raises."""

    def __init__(
        self,
        name: str,
        outcome: Optional[SinkOutcome] = None,
        error: Optional[Exception] = None,
        ready: bool = True,
    ):
        self.name = name
        self.ready = ready
        self.outcome = outcome
        self.error = error
        self.calls: List[Any] = []

    async def deliver(self, lead, meta):
        self.calls.append((lead, meta))
        if self.error is not None:
            raise self.error
        if self.outcome is not None:
            return self.outcome
        return SinkOutcome.success(self.name, message_id=f"{self.name}_1", http_status=200)


class FakeResponse:
    def __init__(self, status: int, body: str):
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    def __init__(self, response: FakeResponse, error: Optional[BaseException] = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, json=None, headers=None):
        self.calls.append({"url": url, "json": json, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSessionFactory:
    """Replaces aiohttp.ClientSession for the outbound sinks."""

    def __init__(self, status: int = 200, body: str = "", error: Optional[BaseException] = None):
        self.session = FakeSession(FakeResponse(status, body), error=error)
        self.created = 0
        self.kwargs: Dict[str, Any] = {}

    def __call__(self, **kwargs):
        self.created += 1
        self.kwargs = kwargs
        return self.session

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.session.calls


@pytest.fixture
def valid_payload() -> Dict[str, Any]:
    return {
        "fullName": "Ana Torres",
        "email": "ana@acmecorp.com",
        "company": "Acme Corp",
        "stage": "ready",
        "needs": ["seo", "web-dev"],
        "message": "We need a new site before launch",
        "formType": "analyze",
        "user_language": "en",
        "page_section": "hero",
        "cta_label": "get_started",
        "utm_source": "google",
    }


@pytest.fixture
def lead() -> LeadSubmission:
    return LeadSubmission(
        full_name="Ana Torres",
        email="ana@acmecorp.com",
        company="Acme Corp",
        stage="ready",
        needs=("seo", "web-dev"),
        form_type="analyze",
        intent="analyze_project",
        language="en",
        message="We need a new site before launch",
        page_section="hero",
        cta_label="get_started",
        utm_source="google",
    )


@pytest.fixture
def meta() -> RequestMeta:
    return RequestMeta(client_id="203.0.113.7", user_agent="pytest-agent", country="MX")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_orchestrator(clock):
    def _make(email_sink=None, lead_store_sink=None, cooldown_seconds: float = 60.0):
        return SubmissionOrchestrator(
            rate_limiter=RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=cooldown_seconds),
            email_sink=email_sink or RecordingSink("email"),
            lead_store_sink=lead_store_sink or RecordingSink("sheets"),
        )

    return _make
