"""
Lead notification e-mail sent to the site owner through the Resend HTTP API.

Every value that came from the visitor is escaped exactly once before it is
placed into the HTML body, since the body is rendered by a mail client.
"""
from __future__ import annotations

import asyncio
import html
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import aiohttp

from leadfunnel.core.config import Settings
from leadfunnel.core.logging import get_structlog_logger
from leadfunnel.schemas.submission import LeadSubmission
from leadfunnel.services.client_identity import RequestMeta
from leadfunnel.services.sinks import SinkOutcome, SinkStatus

logger = get_structlog_logger(__name__)

SINK_NAME = "email"

FORM_TYPE_LABELS: Dict[str, Dict[str, str]] = {
    "analyze": {"en": "Project Analysis", "es": "Analisis de Proyecto"},
    "conversation": {"en": "Conversation", "es": "Conversacion"},
}

STAGE_LABELS: Dict[str, Dict[str, str]] = {
    "exploring": {"en": "Just exploring", "es": "Solo explorando"},
    "ready": {"en": "Ready to start soon", "es": "Listo para comenzar"},
    "urgent": {"en": "Need it urgently", "es": "Lo necesito urgente"},
}

NEED_LABELS: Dict[str, Dict[str, str]] = {
    "web-design": {"en": "Web Design & UX", "es": "Diseno Web & UX"},
    "web-dev": {"en": "Web Development", "es": "Desarrollo Web"},
    "ai-strategy": {"en": "AI & Digital Strategy", "es": "IA & Estrategia Digital"},
    "seo": {"en": "SEO & Lead Generation", "es": "SEO & Generacion de Leads"},
    "ecommerce": {"en": "E-commerce Solutions", "es": "Soluciones E-commerce"},
    "other": {"en": "Other", "es": "Otro"},
}

FIELD_LABELS: Dict[str, Dict[str, str]] = {
    "heading": {"en": "New Lead", "es": "Nuevo Lead"},
    "full_name": {"en": "Full Name:", "es": "Nombre Completo:"},
    "email": {"en": "Email:", "es": "Email:"},
    "company": {"en": "Company:", "es": "Empresa:"},
    "stage": {"en": "Project Stage:", "es": "Etapa del Proyecto:"},
    "needs": {"en": "Services Needed:", "es": "Servicios Necesarios:"},
    "message": {"en": "Message:", "es": "Mensaje:"},
    "tracking": {"en": "Tracking Data", "es": "Datos de Seguimiento"},
    "source": {"en": "Source:", "es": "Origen:"},
    "cta": {"en": "CTA:", "es": "CTA:"},
    "country": {"en": "Country:", "es": "Pais:"},
    "language": {"en": "Language:", "es": "Idioma:"},
    "form_type": {"en": "Form Type:", "es": "Tipo de formulario:"},
    "date": {"en": "Date:", "es": "Fecha:"},
}


def escape_html(value: Optional[str]) -> str:
    """Escape &, <, >, double and single quotes."""
    if value is None:
        return ""
    return html.escape(value, quote=True)


def _label(table: Dict[str, Dict[str, str]], key: str, language: str) -> str:
    entry = table.get(key)
    if entry is None:
        return key
    return entry.get(language) or entry["en"]


def build_subject(lead: LeadSubmission) -> str:
    form_label = _label(FORM_TYPE_LABELS, lead.form_type, lead.language)
    subject = f"{form_label} - {lead.company} ({lead.full_name})"
    # Plain-text header: no HTML escaping, but never allow line breaks
    return " ".join(subject.split())


def _field(label: str, value_html: str) -> str:
    return (
        '<div class="field">'
        f'<div class="label">{label}</div>'
        f'<div class="value">{value_html}</div>'
        "</div>"
    )


def build_html(lead: LeadSubmission, meta: RequestMeta, received_at: Optional[datetime] = None) -> str:
    lang = lead.language
    received_at = received_at or datetime.now(timezone.utc)

    safe_name = escape_html(lead.full_name)
    safe_email = escape_html(lead.email)
    safe_company = escape_html(lead.company)
    safe_message = escape_html(lead.message)
    needs_list = escape_html(", ".join(_label(NEED_LABELS, need, lang) for need in lead.needs))
    form_label = escape_html(_label(FORM_TYPE_LABELS, lead.form_type, lang))

    fields = [
        _field(_label(FIELD_LABELS, "full_name", lang), safe_name),
        _field(
            _label(FIELD_LABELS, "email", lang),
            f'<a href="mailto:{safe_email}">{safe_email}</a>',
        ),
        _field(_label(FIELD_LABELS, "company", lang), safe_company),
        _field(_label(FIELD_LABELS, "stage", lang), escape_html(_label(STAGE_LABELS, lead.stage, lang))),
        _field(_label(FIELD_LABELS, "needs", lang), needs_list),
    ]
    if safe_message:
        fields.append(
            '<div class="field">'
            f'<div class="label">{_label(FIELD_LABELS, "message", lang)}</div>'
            f'<div class="message-box">{safe_message}</div>'
            "</div>"
        )

    tracking = [
        f"<p><strong>{_label(FIELD_LABELS, 'source', lang)}</strong> {escape_html(lead.page_section)}</p>",
        f"<p><strong>{_label(FIELD_LABELS, 'cta', lang)}</strong> {escape_html(lead.cta_label)}</p>",
    ]
    for label, value in (
        ("UTM Source:", lead.utm_source),
        ("UTM Medium:", lead.utm_medium),
        ("UTM Campaign:", lead.utm_campaign),
    ):
        if value:
            tracking.append(f"<p><strong>{label}</strong> {escape_html(value)}</p>")
    if lead.country:
        tracking.append(
            f"<p><strong>{_label(FIELD_LABELS, 'country', lang)}</strong> {escape_html(lead.country)}</p>"
        )

    fields_html = "".join(fields)
    tracking_html = "".join(tracking)
    heading = _label(FIELD_LABELS, "heading", lang)
    tracking_label = _label(FIELD_LABELS, "tracking", lang)
    language_label = _label(FIELD_LABELS, "language", lang)
    form_type_label = _label(FIELD_LABELS, "form_type", lang)
    date_label = _label(FIELD_LABELS, "date", lang)
    received = received_at.strftime("%Y-%m-%d %H:%M:%S %Z")

    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>
      body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
      .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
      .header {{ background: #0066FF; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
      .content {{ background: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px; }}
      .field {{ margin-bottom: 20px; }}
      .label {{ font-weight: bold; color: #0066FF; margin-bottom: 5px; }}
      .value {{ color: #333; }}
      .message-box {{ background: white; padding: 15px; border-left: 4px solid #0066FF; border-radius: 4px; }}
      .tracking {{ background: #fff; padding: 15px; border-left: 4px solid #0066FF; margin-top: 20px; }}
    </style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h2>{form_label} - {heading}</h2>
      </div>
      <div class="content">
        {fields_html}
        <div class="tracking">
          <div class="label">{tracking_label}</div>
          {tracking_html}
        </div>
        <hr style="margin: 30px 0; border: none; border-top: 1px solid #ddd;">
        <div style="font-size: 12px; color: #999;">
          <strong>IP:</strong> {escape_html(meta.client_id)}<br>
          <strong>{language_label}</strong> {escape_html(lang)}<br>
          <strong>{form_type_label}</strong> {escape_html(lead.form_type)}<br>
          <strong>{date_label}</strong> {received}
        </div>
      </div>
    </div>
  </body>
</html>
"""


@dataclass(frozen=True)
class EmailSettings:
    api_key: Optional[str]
    api_url: str
    from_address: str
    to_address: str
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSettings":
        return cls(
            api_key=settings.resend_api_key,
            api_url=settings.resend_api_url,
            from_address=f"{settings.resend_from_name} <{settings.resend_from_email}>",
            to_address=settings.admin_email,
            timeout_seconds=settings.sink_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


def _provider_error(status: int, body_text: str) -> str:
    try:
        body = json.loads(body_text)
    except ValueError:
        return f"HTTP {status}: {body_text[:200]}"
    if isinstance(body, dict):
        name = body.get("name") or "error"
        message = body.get("message") or ""
        return f"HTTP {status}: {name}: {message}"
    return f"HTTP {status}"


class ResendEmailSink:
    """Single-attempt notification; failures come back as outcomes."""

    name = SINK_NAME

    def __init__(
        self,
        config: EmailSettings,
        session_factory: Callable[..., Any] = aiohttp.ClientSession,
    ):
        self.config = config
        self._session_factory = session_factory

    @property
    def ready(self) -> bool:
        return self.config.configured

    def build_message(self, lead: LeadSubmission, meta: RequestMeta) -> Dict[str, Any]:
        return {
            "from": self.config.from_address,
            "to": [self.config.to_address],
            "subject": build_subject(lead),
            "html": build_html(lead, meta),
            "reply_to": lead.email,
        }

    async def deliver(self, lead: LeadSubmission, meta: RequestMeta) -> SinkOutcome:
        if not self.config.configured:
            logger.error("email.misconfigured", reason="missing_api_key")
            return SinkOutcome.failure(SINK_NAME, SinkStatus.MISCONFIGURED, "Email service not configured")

        message = self.build_message(lead, meta)
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with self._session_factory(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            ) as session:
                async with session.post(self.config.api_url, json=message, headers=headers) as response:
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
                _provider_error(status, body_text),
                http_status=status,
            )

        try:
            body = json.loads(body_text)
        except ValueError:
            body = None
        message_id = body.get("id") if isinstance(body, dict) else None
        if not message_id:
            return SinkOutcome.failure(
                SINK_NAME,
                SinkStatus.REMOTE_FAILURE,
                "Malformed provider response",
                http_status=status,
            )

        logger.info("email.sent", message_id=message_id)
        return SinkOutcome.success(SINK_NAME, message_id=str(message_id), http_status=status)
