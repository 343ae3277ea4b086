"""
Email service for transactional messages.

Templates are built in and rendered from plain text with ``{{placeholder}}``
tokens. Administrators can edit them; a stored edit replaces the built-in
subject and body when the message is sent. The HTML part wraps the rendered
text in a branded layout. Delivery goes through SMTP; the blocking client
runs in a worker thread so the event loop is never held up by a slow mail
server.
"""

import asyncio
import html
import logging
import re
import smtplib
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import get_db_session
from app.core.exceptions import EmailDeliveryError
from app.models.settings import EmailTemplate

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"(https?://[\w\-._~:/?#\[\]@!$&'()*+,;=%]+)")

EMAIL_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "registration_activation": {
        "title": "Registration & Activation",
        "description": "Sent after a new user registers. Includes an activation link.",
        "placeholders": ["app_name", "user_full_name", "activation_link"],
        "subject": "Activate your {{app_name}} account",
        "body_text": (
            "Dear {{user_full_name}},\n\n"
            "Welcome to {{app_name}}.\n\n"
            "Please activate your account by clicking the link below:\n"
            "{{activation_link}}\n\n"
            "If you did not create this account, you can ignore this email.\n\n"
            "Regards,\n"
            "{{app_name}} Team"
        ),
    },
    "auth_code": {
        "title": "Authentication Code",
        "description": "Sent during login with the one-time authentication code.",
        "placeholders": ["app_name", "user_full_name", "otp_code", "otp_expires_minutes", "support_email"],
        "subject": "Your {{app_name}} authentication code",
        "body_text": (
            "Dear {{user_full_name}},\n\n"
            "Use the following authentication code to complete your login:\n"
            "{{otp_code}}\n\n"
            "This code expires in {{otp_expires_minutes}} minutes.\n\n"
            "If you did not try to sign in, please reset your password or contact support at {{support_email}}.\n\n"
            "Regards,\n"
            "{{app_name}} Team"
        ),
    },
    "application_success": {
        "title": "Successful Application",
        "description": "Sent when a job seeker successfully applies for a job.",
        "placeholders": ["app_name", "user_full_name", "job_title", "company_name", "job_link"],
        "subject": "Application received: {{job_title}} at {{company_name}}",
        "body_text": (
            "Dear {{user_full_name}},\n\n"
            "We have received your application for {{job_title}} at {{company_name}}.\n\n"
            "You can review the job details here:\n"
            "{{job_link}}\n\n"
            "Thank you for using {{app_name}}.\n\n"
            "Regards,\n"
            "{{app_name}} Team"
        ),
    },
    "interview_invitation": {
        "title": "Interview Invitation",
        "description": "Sent to invite a job seeker to an interview.",
        "placeholders": [
            "user_full_name", "job_title", "company_name",
            "interview_date", "interview_time", "interview_location", "support_email",
        ],
        "subject": "Interview invitation: {{job_title}} at {{company_name}}",
        "body_text": (
            "Dear {{user_full_name}},\n\n"
            "You are invited to an interview for {{job_title}} at {{company_name}}.\n\n"
            "Date: {{interview_date}}\n"
            "Time: {{interview_time}}\n"
            "Location: {{interview_location}}\n\n"
            "If you need to reschedule, please contact us at {{support_email}}.\n\n"
            "Regards,\n"
            "{{company_name}} Recruitment Team"
        ),
    },
    "application_rejected": {
        "title": "Application Update",
        "description": "Sent when an application is not successful.",
        "placeholders": ["app_name", "user_full_name", "job_title", "company_name"],
        "subject": "Update on your application: {{job_title}}",
        "body_text": (
            "Dear {{user_full_name}},\n\n"
            "Thank you for your interest in {{job_title}} at {{company_name}}.\n\n"
            "After careful consideration, we will not be moving forward with your application at this time.\n\n"
            "We encourage you to apply for other opportunities on {{app_name}}.\n\n"
            "Regards,\n"
            "{{company_name}} Recruitment Team"
        ),
    },
    "job_alert": {
        "title": "Job Alert",
        "description": "Sent when a new job matches the user's alert preferences.",
        "placeholders": ["app_name", "user_full_name", "job_title", "company_name", "job_link", "unsubscribe_link"],
        "subject": "New job alert: {{job_title}}",
        "body_text": (
            "Hi {{user_full_name}},\n\n"
            "A new job was posted that may match your preferences:\n"
            "{{job_title}} at {{company_name}}\n\n"
            "View job:\n"
            "{{job_link}}\n\n"
            "If you no longer want to receive these alerts, you can unsubscribe here:\n"
            "{{unsubscribe_link}}\n\n"
            "Regards,\n"
            "{{app_name}} Team"
        ),
    },
}


def render_tokens(template: str, data: Dict[str, Any], as_html: bool = False) -> str:
    """Replace ``{{key}}`` tokens; values are HTML-escaped when ``as_html``."""
    out = template
    for key, raw_value in data.items():
        token = "{{" + key + "}}"
        value = "" if raw_value is None else str(raw_value)
        if as_html and key == "activation_link":
            safe = html.escape(value)
            value = f'<a href="{safe}">{safe}</a>'
        elif as_html and key == "otp_code":
            value = (
                '<span style="display:inline-block; padding:6px 10px; border-radius:10px; '
                'background:#eef2ff; border:1px solid #e0e7ff; font-weight:700; letter-spacing:2px;">'
                f"{html.escape(value)}</span>"
            )
        elif as_html:
            value = html.escape(value)
        out = out.replace(token, value)
    return out


def text_to_html(body_text: str) -> str:
    """Turn blank-line separated paragraphs into escaped, linkified HTML."""
    paragraphs = re.split(r"\n\n+", body_text.replace("\r\n", "\n"))
    parts = []
    for paragraph in paragraphs:
        escaped = html.escape(paragraph, quote=False).replace("\n", "<br/>")
        linked = _URL_RE.sub(
            lambda m: f'<a href="{m.group(1)}" style="color:#2563eb; text-decoration:underline;">{m.group(1)}</a>',
            escaped,
        )
        parts.append(f'<p style="margin:0 0 14px 0;">{linked}</p>')
    return "".join(parts)


def wrap_branded_html(title: str, content_html: str, preheader: str = "") -> str:
    brand = html.escape(settings.app_name)
    support = settings.support_address
    year = datetime.now(timezone.utc).year
    support_line = (
        f'<div style="margin:0;">Need help? Contact <a href="mailto:{html.escape(support)}" '
        f'style="color:#2563eb; text-decoration:underline;">{html.escape(support)}</a>.</div>'
        if support else ""
    )
    return (
        "<!doctype html>"
        '<html lang="en"><head><meta charset="utf-8"/>'
        '<meta name="viewport" content="width=device-width, initial-scale=1"/>'
        f"<title>{html.escape(title)}</title></head>"
        '<body style="margin:0; padding:0; background:#f6f7fb;">'
        f'<div style="display:none; max-height:0; overflow:hidden; opacity:0;">{html.escape(preheader)}</div>'
        '<table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f6f7fb;">'
        '<tr><td align="center" style="padding:28px 12px;">'
        '<table role="presentation" width="600" cellspacing="0" cellpadding="0" style="max-width:600px; width:100%;">'
        f'<tr><td style="padding:0 0 14px 0; font-family:Arial, sans-serif; font-size:18px; font-weight:700; color:#0f172a;">{brand}</td></tr>'
        '<tr><td style="background:#ffffff; border-radius:14px; padding:22px; border:1px solid #e6e8f0;">'
        f'<div style="font-family:Arial, sans-serif; font-size:18px; font-weight:700; color:#0f172a; margin:0 0 10px 0;">{html.escape(title)}</div>'
        f'<div style="font-family:Arial, sans-serif; font-size:14px; line-height:1.55; color:#0f172a;">{content_html}</div>'
        "</td></tr>"
        '<tr><td style="padding:14px 4px 0 4px; font-family:Arial, sans-serif; font-size:12px; color:#64748b;">'
        f'<div style="margin:0 0 6px 0;">This is an automated message from {brand}.</div>'
        f"{support_line}"
        f'<div style="margin:10px 0 0 0;">&copy; {year} {brand}</div>'
        "</td></tr></table></td></tr></table></body></html>"
    )


class EmailService:
    """Renders built-in templates and delivers them over SMTP."""

    def __init__(self):
        self.templates = EMAIL_TEMPLATES

    def default_context(self) -> Dict[str, Any]:
        return {
            "app_name": settings.app_name,
            "support_email": settings.support_address,
        }

    def render(self, template_key: str, data: Dict[str, Any]) -> Tuple[str, str, str]:
        """
        Render a built-in template.

        Args:
            template_key: Key into the built-in template table
            data: Placeholder values; app_name and support_email are filled in

        Returns:
            (subject, text body, html body)
        """
        template = self.templates.get(template_key)
        if template is None:
            raise KeyError(f"Email template not found: {template_key}")
        return self.render_template(template, data)

    def render_template(self, template: Dict[str, Any], data: Dict[str, Any]) -> Tuple[str, str, str]:
        context = {**self.default_context(), **data}
        subject = render_tokens(template["subject"], context)
        text = render_tokens(template["body_text"], context)
        content_html = render_tokens(text_to_html(template["body_text"]), context, as_html=True)
        body_html = wrap_branded_html(template["title"] or subject, content_html, preheader=subject)
        return subject, text, body_html

    async def resolve_template(self, template_key: str) -> Dict[str, Any]:
        """The built-in template with any stored edit applied, or a stored custom template."""
        template = dict(self.templates.get(template_key, {}))
        try:
            async with get_db_session() as session:
                stored = (await session.execute(
                    select(EmailTemplate).where(EmailTemplate.key == template_key)
                )).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(f"Stored email templates unavailable, using built-in '{template_key}': {e}")
            stored = None

        if stored is not None:
            template.update(title=stored.title, subject=stored.subject, body_text=stored.body_text)
        if not template:
            raise KeyError(f"Email template not found: {template_key}")
        return template

    async def send_templated_email(self, to: str, template_key: str, data: Dict[str, Any]) -> None:
        subject, text, body_html = self.render_template(await self.resolve_template(template_key), data)
        await self.send_email(to=to, subject=subject, text=text, html_body=body_html)
        logger.info(f"Sent '{template_key}' email to {to}")

    async def send_email(self, to: str, subject: str, text: str, html_body: Optional[str] = None) -> None:
        """Send one message; raises EmailDeliveryError on any transport failure."""
        if not settings.email_configured:
            raise EmailDeliveryError("Email transport is not configured")

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = settings.sender_address
        message["To"] = to
        message.attach(MIMEText(text, "plain", "utf-8"))
        if html_body:
            message.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Failed to send email to {to}: {e}") from e

    def _deliver(self, message: MIMEMultipart) -> None:
        timeout = settings.email_timeout
        if settings.smtp_use_ssl:
            server = smtplib.SMTP_SSL(settings.email_host, settings.email_port, timeout=timeout)
        else:
            server = smtplib.SMTP(settings.email_host, settings.email_port, timeout=timeout)
        with server:
            if not settings.smtp_use_ssl:
                server.starttls()
            server.login(settings.email_user, settings.email_password)
            server.send_message(message)


email_service = EmailService()
