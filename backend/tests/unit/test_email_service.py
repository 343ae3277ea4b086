"""
Unit tests for email template rendering and the notification email mapping.
"""

import pytest

from app.core.config import settings
from app.core.exceptions import EmailDeliveryError
from app.models.notification import NotificationType
from app.services.email_service import EMAIL_TEMPLATES, EmailService, render_tokens, text_to_html
from app.services.notification_service import email_template_for, resolve_type


@pytest.fixture
def service():
    return EmailService()


class TestRendering:
    def test_activation_template(self, service):
        subject, text, body_html = service.render("registration_activation", {
            "user_full_name": "Ann Example",
            "activation_link": "http://localhost:8000/api/v1/auth/activate?token=abc",
        })

        assert "Activate your" in subject
        assert "Dear Ann Example" in text
        assert "token=abc" in text
        assert '<a href="http://localhost:8000/api/v1/auth/activate?token=abc">' in body_html
        assert "{{" not in text

    def test_auth_code_template_highlights_the_code(self, service):
        _, text, body_html = service.render("auth_code", {
            "user_full_name": "Ann",
            "otp_code": "123456",
            "otp_expires_minutes": 5,
        })

        assert "123456" in text
        assert "expires in 5 minutes" in text
        assert "letter-spacing:2px" in body_html

    def test_html_values_are_escaped(self, service):
        _, _, body_html = service.render("job_alert", {
            "user_full_name": "<script>alert(1)</script>",
            "job_title": "Dev",
            "company_name": "Acme",
            "job_link": "http://example.com/jobs/1",
            "unsubscribe_link": "http://example.com/unsubscribe",
        })

        assert "<script>" not in body_html
        assert "&lt;script&gt;" in body_html

    def test_unknown_template(self, service):
        with pytest.raises(KeyError):
            service.render("no_such_template", {})

    def test_every_template_renders(self, service):
        for key in EMAIL_TEMPLATES:
            subject, text, body_html = service.render(key, {})
            assert subject
            assert text
            assert body_html.startswith("<!doctype html>")

    def test_missing_values_leave_other_tokens(self):
        assert render_tokens("Hi {{name}} {{other}}", {"name": "Ann"}) == "Hi Ann {{other}}"

    def test_text_to_html_links_urls(self):
        out = text_to_html("See:\nhttp://example.com/a\n\nBye")

        assert out.count("<p") == 2
        assert '<a href="http://example.com/a"' in out


class TestDelivery:
    async def test_unconfigured_transport_raises(self, monkeypatch):
        # The shared outbox fixture patches the instance, not the class
        service = EmailService()
        monkeypatch.setattr(settings, "email_host", "")

        with pytest.raises(EmailDeliveryError):
            await service.send_email("a@example.com", "Subject", "Body")


class TestNotificationEmailMapping:
    @pytest.mark.parametrize("notification_type, data, expected", [
        ("job_alert", {}, "job_alert"),
        ("application_success", {}, "application_success"),
        ("application_update", {"status": "interview"}, "interview_invitation"),
        ("application_update", {"status": "rejected"}, "application_rejected"),
        ("application_update", {"status": "accepted"}, "application_success"),
        ("application_received", {}, None),
        ("system", {}, None),
    ])
    def test_template_choice(self, notification_type, data, expected):
        assert email_template_for(notification_type, data) == expected

    def test_semantic_types_are_stored_as_status_changes(self):
        assert resolve_type("application_success") == NotificationType.APPLICATION_STATUS_CHANGED
        assert resolve_type("application_update") == NotificationType.APPLICATION_STATUS_CHANGED
        assert resolve_type("job_alert") == NotificationType.JOB_ALERT

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            resolve_type("carrier_pigeon")
