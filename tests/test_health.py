# tests/test_health.py
import pytest
from fastapi.testclient import TestClient

from leadfunnel.core.config import settings
from leadfunnel.main import app

client = TestClient(app)

SHEET_URL = "https://script.google.com/macros/s/AKfycbx123/exec"


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", "re_test_key")
    monkeypatch.setattr(settings, "sheet_webapp_url", SHEET_URL)
    monkeypatch.setattr(settings, "rate_limit_backend", "memory")


def test_liveness():
    response = client.get("/api/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_health_all_configured(configured):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["email"]["status"] == "healthy"
    assert body["checks"]["sheets"]["status"] == "healthy"
    assert body["checks"]["redis"]["status"] == "skipped"
    assert "google-apps-script" in body["dependencies"]


def test_health_degraded_on_bad_sheet_url(configured, monkeypatch):
    monkeypatch.setattr(settings, "sheet_webapp_url", "https://hooks.acmecorp.com/lead")
    body = client.get("/api/health").json()
    assert body["status"] == "degraded"
    assert body["checks"]["sheets"]["status"] == "unhealthy"


def test_health_unhealthy_without_email_key(configured, monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", None)
    body = client.get("/api/health").json()
    assert body["status"] == "unhealthy"


def test_ready_without_sheet(configured, monkeypatch):
    monkeypatch.setattr(settings, "sheet_webapp_url", None)
    response = client.get("/api/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"] == {"email": "healthy", "sheets": "skipped", "redis": "skipped"}


def test_not_ready_without_email_key(configured, monkeypatch):
    monkeypatch.setattr(settings, "resend_api_key", None)
    response = client.get("/api/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_health_metrics():
    response = client.get("/api/health/metrics")
    assert response.status_code == 200
    assert "api_memory_usage_bytes" in response.text


def test_site_config(monkeypatch):
    monkeypatch.setattr(settings, "ga_measurement_id", "G-TEST123")
    response = client.get("/api/site-config")
    assert response.status_code == 200
    body = response.json()
    assert body["gaMeasurementId"] == "G-TEST123"
    assert body["languages"] == ["en", "es"]
    assert "web-dev" in body["services"]
    assert body["stages"] == ["exploring", "ready", "urgent"]


def test_root():
    body = client.get("/").json()
    assert body["name"] == "Lead Funnel API"
    assert body["health"] == "/api/health"
