# leadfunnel/schemas/submission.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

NEED_IDS: Tuple[str, ...] = ("web-design", "web-dev", "ai-strategy", "seo", "ecommerce", "other")
STAGES: Tuple[str, ...] = ("exploring", "ready", "urgent")
FORM_TYPES: Tuple[str, ...] = ("analyze", "conversation")
LANGUAGES: Tuple[str, ...] = ("en", "es")

INTENT_BY_FORM_TYPE: Dict[str, str] = {
    "analyze": "analyze_project",
    "conversation": "conversation",
}

HONEYPOT_FIELD = "website"

NeedId = Literal["web-design", "web-dev", "ai-strategy", "seo", "ecommerce", "other"]
Stage = Literal["exploring", "ready", "urgent"]
FormType = Literal["analyze", "conversation"]
Language = Literal["en", "es"]


class LeadSubmissionForm(BaseModel):
    """Raw contact form body; anything outside this field set is rejected."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    full_name: str = Field(alias="fullName", min_length=2, max_length=100)
    email: EmailStr
    company: str = Field(min_length=2, max_length=100)
    stage: Stage
    needs: List[NeedId] = Field(min_length=1, max_length=10)
    message: Optional[str] = Field(default=None, max_length=1000)
    form_type: FormType = Field(alias="formType")
    user_language: Language = "en"

    # Tracking (display only)
    page_section: Optional[str] = Field(default=None, max_length=100)
    cta_label: Optional[str] = Field(default=None, max_length=100)
    utm_source: Optional[str] = Field(default=None, max_length=100)
    utm_medium: Optional[str] = Field(default=None, max_length=100)
    utm_campaign: Optional[str] = Field(default=None, max_length=100)

    # Honeypot, inspected before validation
    website: Optional[Any] = None

    @field_validator("email")
    def lower_email(cls, v):
        return v.strip().lower()


@dataclass(frozen=True)
class LeadSubmission:
    full_name: str
    email: str
    company: str
    stage: str
    needs: Tuple[str, ...]
    form_type: str
    intent: str
    language: str = "en"
    message: Optional[str] = None
    page_section: str = "unknown"
    cta_label: str = "direct"
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    user_agent: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_form(
        cls,
        form: LeadSubmissionForm,
        *,
        user_agent: Optional[str] = None,
        country: Optional[str] = None,
    ) -> "LeadSubmission":
        return cls(
            full_name=form.full_name,
            email=form.email,
            company=form.company,
            stage=form.stage,
            needs=tuple(form.needs),
            form_type=form.form_type,
            intent=INTENT_BY_FORM_TYPE[form.form_type],
            language=form.user_language,
            message=form.message or None,
            page_section=form.page_section or "unknown",
            cta_label=form.cta_label or "direct",
            utm_source=form.utm_source or None,
            utm_medium=form.utm_medium or None,
            utm_campaign=form.utm_campaign or None,
            user_agent=user_agent,
            country=country,
        )

    @property
    def needs_display(self) -> str:
        return ", ".join(self.needs)
