# tests/test_validation.py
import pytest

from leadfunnel.core.exceptions import LeadValidationError
from leadfunnel.services.client_identity import RequestMeta
from leadfunnel.services.validation import is_honeypot_tripped, validate_submission


def _errors(raw):
    with pytest.raises(LeadValidationError) as exc_info:
        validate_submission(raw)
    return exc_info.value.field_errors


def test_valid_submission_normalized(valid_payload):
    lead = validate_submission(valid_payload)
    assert lead.full_name == "Ana Torres"
    assert lead.needs == ("seo", "web-dev")
    assert lead.intent == "analyze_project"
    assert lead.language == "en"
    assert lead.page_section == "hero"
    assert lead.utm_medium is None


def test_conversation_form_intent(valid_payload):
    valid_payload["formType"] = "conversation"
    assert validate_submission(valid_payload).intent == "conversation"


def test_tracking_defaults(valid_payload):
    for key in ("page_section", "cta_label", "utm_source"):
        valid_payload.pop(key)
    lead = validate_submission(valid_payload)
    assert lead.page_section == "unknown"
    assert lead.cta_label == "direct"
    assert lead.utm_source is None


def test_language_defaults_to_english(valid_payload):
    valid_payload.pop("user_language")
    assert validate_submission(valid_payload).language == "en"


def test_strings_are_trimmed(valid_payload):
    valid_payload["fullName"] = "   Ana Torres   "
    valid_payload["company"] = "\tAcme Corp\n"
    lead = validate_submission(valid_payload)
    assert lead.full_name == "Ana Torres"
    assert lead.company == "Acme Corp"


def test_length_checked_after_trimming(valid_payload):
    valid_payload["fullName"] = "  A  "
    assert "fullName" in _errors(valid_payload)


def test_email_lowercased(valid_payload):
    valid_payload["email"] = "Ana@AcmeCorp.COM"
    assert validate_submission(valid_payload).email == "ana@acmecorp.com"


def test_invalid_email(valid_payload):
    valid_payload["email"] = "not-an-email"
    assert "email" in _errors(valid_payload)


def test_missing_required_fields():
    errors = _errors({})
    for field in ("fullName", "email", "company", "stage", "needs", "formType"):
        assert field in errors


def test_empty_needs_rejected(valid_payload):
    valid_payload["needs"] = []
    errors = _errors(valid_payload)
    assert list(errors) == ["needs"]


def test_too_many_needs_rejected(valid_payload):
    valid_payload["needs"] = ["seo"] * 11
    assert "needs" in _errors(valid_payload)


def test_unknown_need_rejected(valid_payload):
    valid_payload["needs"] = ["seo", "crypto"]
    assert "needs" in _errors(valid_payload)


def test_invalid_stage(valid_payload):
    valid_payload["stage"] = "someday"
    assert "stage" in _errors(valid_payload)


def test_invalid_language(valid_payload):
    valid_payload["user_language"] = "fr"
    assert "user_language" in _errors(valid_payload)


def test_message_too_long(valid_payload):
    valid_payload["message"] = "x" * 1001
    assert "message" in _errors(valid_payload)


def test_empty_message_becomes_none(valid_payload):
    valid_payload["message"] = "   "
    assert validate_submission(valid_payload).message is None


def test_unknown_field_rejected(valid_payload):
    valid_payload["budget"] = "10k"
    errors = _errors(valid_payload)
    assert errors["budget"] == ["Unrecognized field"]


def test_error_messages_not_duplicated(valid_payload):
    valid_payload["needs"] = ["crypto", "crypto"]
    errors = _errors(valid_payload)
    assert len(errors["needs"]) == len(set(errors["needs"]))


def test_non_object_body_rejected():
    assert _errors(["not", "an", "object"]) == {"body": ["Expected a JSON object"]}
    assert _errors(None) == {"body": ["Expected a JSON object"]}


def test_error_response_shape(valid_payload):
    valid_payload["needs"] = []
    with pytest.raises(LeadValidationError) as exc_info:
        validate_submission(valid_payload)
    body = exc_info.value.to_response()
    assert body["error"] == "Invalid form data"
    assert "needs" in body["details"]
    assert exc_info.value.status_code == 400


def test_request_meta_carried_onto_lead(valid_payload):
    meta = RequestMeta(client_id="203.0.113.7", user_agent="Mozilla/5.0", country="ES")
    lead = validate_submission(valid_payload, meta)
    assert lead.user_agent == "Mozilla/5.0"
    assert lead.country == "ES"


def test_empty_honeypot_passes_validation(valid_payload):
    valid_payload["website"] = ""
    assert validate_submission(valid_payload).full_name == "Ana Torres"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://spam.example", True),
        ("x", True),
        (1, True),
        (["link"], True),
        ("", False),
        ("   ", True),
        ("\n", True),
        (None, False),
    ],
)
def test_honeypot(valid_payload, value, expected):
    valid_payload["website"] = value
    assert is_honeypot_tripped(valid_payload) is expected


def test_honeypot_absent(valid_payload):
    assert is_honeypot_tripped(valid_payload) is False


def test_honeypot_ignores_non_objects():
    assert is_honeypot_tripped("website=spam") is False
    assert is_honeypot_tripped(None) is False
