"""
tests/test_validation.py — Unit tests for submission parsing and validation.

Covers Submission.from_payload, the ContactForm field rules, the honeypot,
embedded spam checks, and the disposable-domain denylist.
"""

import pytest

from app.intake.submission import Submission
from app.intake.validation import is_disposable_email, validate_submission

SPAM_MESSAGE = "FREE MONEY!!! www.spam.biz CLICK HERE NOW!!!"


# ── Submission.from_payload ───────────────────────────────────────────────────

class TestFromPayload:
    def test_reads_camel_case_form_keys(self):
        sub = Submission.from_payload({
            "name": "Jane Doe",
            "email": "jane@acme.io",
            "projectType": "web-development",
            "message": "Hello there",
            "turnstileToken": "tok",
        })
        assert sub.project_type == "web-development"
        assert sub.captcha_token == "tok"

    def test_strips_whitespace_and_blanks_optionals(self):
        sub = Submission.from_payload({
            "name": "  Jane Doe ",
            "email": " jane@acme.io",
            "project_type": "web-development",
            "message": "Hello there",
            "company": "   ",
            "phone": "",
        })
        assert sub.name == "Jane Doe"
        assert sub.email == "jane@acme.io"
        assert sub.company is None
        assert sub.phone is None
        assert sub.website == ""

    def test_client_metadata_attached(self):
        sub = Submission.from_payload({}, client_ip="10.0.0.1", user_agent="curl/8.0")
        assert sub.client_ip == "10.0.0.1"
        assert sub.user_agent == "curl/8.0"
        assert sub.name == ""

    def test_baseline_fields_exclude_honeypot_and_token(self, make_submission):
        fields = make_submission(website="", captcha_token="tok").baseline_fields()
        assert "website" not in fields
        assert "captcha_token" not in fields
        assert fields["email"] == "jane@acme.io"


# ── Happy path ────────────────────────────────────────────────────────────────

class TestValidSubmission:
    def test_valid_submission_passes(self, submission):
        report = validate_submission(submission)
        assert report.ok is True
        assert report.field_errors == {}
        assert report.is_spam is False

    def test_company_and_phone_optional(self, make_submission):
        report = validate_submission(make_submission(company=None, phone=None))
        assert report.ok is True

    def test_possible_phone_number_accepted(self, make_submission):
        assert validate_submission(make_submission(phone="+1 416 555 0199")).ok is True

    def test_name_with_apostrophe_and_hyphen(self, make_submission):
        assert validate_submission(make_submission(name="Mary-Kate O'Neil")).ok is True


# ── Field errors ──────────────────────────────────────────────────────────────

class TestFieldErrors:
    def test_two_char_name_with_short_message_is_invalid(self, make_submission):
        sub = make_submission(name="Jo", email="jo@x.com", message="hi", company=None)
        # "hi" is under the spam length band too, but 5 points stays below 8
        report = validate_submission(sub)
        assert report.ok is False
        assert report.is_spam is False
        assert report.field_errors["message"] == "Message must be at least 10 characters"

    def test_nine_character_message_is_invalid(self, make_submission):
        report = validate_submission(make_submission(message="123456789"))
        assert "message" in report.field_errors

    def test_name_too_short(self, make_submission):
        report = validate_submission(make_submission(name="J"))
        assert report.field_errors["name"] == "Name must be at least 2 characters"

    def test_name_with_digits(self, make_submission):
        report = validate_submission(make_submission(name="Jane 2"))
        assert report.field_errors["name"] == "Name contains invalid characters"

    def test_malformed_email(self, make_submission):
        report = validate_submission(make_submission(email="not-an-email"))
        assert report.field_errors["email"] == "Please enter a valid email address"

    def test_email_too_long(self, make_submission):
        report = validate_submission(make_submission(email="a" * 250 + "@acme.io"))
        assert "email" in report.field_errors

    def test_missing_project_type(self, make_submission):
        report = validate_submission(make_submission(project_type=""))
        assert report.field_errors["project_type"] == "Please select a project type"

    def test_company_too_long(self, make_submission):
        report = validate_submission(make_submission(company="Acme " * 50))
        assert report.field_errors["company"] == "Company name too long"

    def test_impossible_phone(self, make_submission):
        report = validate_submission(make_submission(phone="12"))
        assert report.field_errors["phone"] == "Please enter a valid phone number"

    def test_all_errors_reported_together(self, make_submission):
        report = validate_submission(make_submission(name="J", email="nope", project_type=""))
        assert {"name", "email", "project_type"} <= set(report.field_errors)


# ── Disposable email ──────────────────────────────────────────────────────────

class TestDisposableEmail:
    def test_configured_extra_domain_rejected(self, make_submission):
        report = validate_submission(make_submission(email="jane@10minutemail.com"))
        assert report.field_errors["email"] == "Disposable email addresses are not allowed"

    def test_explicit_extra_domains(self, make_submission):
        sub = make_submission(email="jane@throwaway-inbox.io")
        report = validate_submission(sub, extra_disposable_domains=["throwaway-inbox.io"])
        assert "email" in report.field_errors

    def test_known_blocklist_domain(self):
        assert is_disposable_email("someone@mailinator.com") is True

    def test_regular_domain_allowed(self):
        assert is_disposable_email("jane@acme.io", ["10minutemail.com"]) is False

    def test_domain_match_is_case_insensitive(self):
        assert is_disposable_email("jane@10MinuteMail.com", ["10minutemail.com"]) is True


# ── Honeypot & spam ───────────────────────────────────────────────────────────

class TestHoneypot:
    @pytest.mark.parametrize("message", [
        "We need a new website for our bakery with online ordering and a booking calendar.",
        "hi",
        SPAM_MESSAGE,
    ])
    def test_honeypot_always_spam(self, make_submission, message):
        report = validate_submission(make_submission(website="http://bot.example", message=message))
        assert report.honeypot_triggered is True
        assert report.is_spam is True
        assert report.field_errors == {}

    @pytest.mark.parametrize("website", [" ", "\t \n", "   "])
    def test_whitespace_only_honeypot_is_spam(self, make_submission, website):
        report = validate_submission(make_submission(website=website))
        assert report.honeypot_triggered is True
        assert report.is_spam is True

    def test_whitespace_honeypot_survives_from_payload(self):
        sub = Submission.from_payload({
            "name": "Jane Doe",
            "email": "jane@acme.io",
            "projectType": "web-development",
            "message": "We need a new website for our bakery with online ordering.",
            "website": "\t \n",
        })
        assert sub.website == "\t \n"
        assert validate_submission(sub).honeypot_triggered is True

    def test_null_honeypot_is_empty(self):
        assert Submission.from_payload({"website": None}).website == ""

    def test_honeypot_beats_invalid_fields(self, make_submission):
        report = validate_submission(make_submission(name="", email="", website="x"))
        assert report.is_spam is True
        assert report.spam_verdict.confidence == 100


class TestEmbeddedSpam:
    def test_spam_message_rejected_as_spam(self, make_submission):
        report = validate_submission(make_submission(message=SPAM_MESSAGE))
        assert report.spam_detected is True
        assert report.spam_field == "message"
        assert report.spam_verdict.confidence >= 80
        assert report.field_errors == {}

    def test_spam_company_rejected_as_spam(self, make_submission):
        report = validate_submission(make_submission(company="BUY NOW casino www.win.biz!!!"))
        assert report.spam_detected is True
        assert report.spam_field == "company"

    def test_short_company_is_not_spam(self, make_submission):
        report = validate_submission(make_submission(company="Acme"))
        assert report.ok is True

    def test_over_long_message_is_a_field_error(self, make_submission):
        message = ("We would like a quote for a bakery website with online ordering. " * 40)[:2014]
        report = validate_submission(make_submission(message=message))
        assert report.is_spam is False
        assert report.field_errors == {"message": "Message too long"}

    def test_spam_takes_precedence_over_field_errors(self, make_submission):
        report = validate_submission(make_submission(name="J", message=SPAM_MESSAGE))
        assert report.is_spam is True
        assert report.field_errors == {}
