"""
Integration tests for system settings and email template administration.
"""

from httpx import AsyncClient
from sqlalchemy import select

from app.models.audit import AdminLog
from app.models.settings import EmailTemplate

SETTINGS = "/api/v1/settings"
TEMPLATES = "/api/v1/email-templates"


class TestSystemSettings:
    async def test_defaults_are_public(self, async_client: AsyncClient, engine):
        response = await async_client.get(f"{SETTINGS}/")

        assert response.status_code == 200
        settings = response.json()["settings"]
        assert settings["system_name"] == "HR System"
        assert settings["primary_color"] == "#4f46e5"
        assert settings["support_email"] == ""

    async def test_admin_updates_settings(self, async_client: AsyncClient, db_session, admin_headers):
        response = await async_client.put(
            f"{SETTINGS}/",
            json={"system_name": "  Acme Careers ", "primary_color": "#112233"},
            headers=admin_headers,
        )
        again = await async_client.put(f"{SETTINGS}/", json={"system_name": "Acme Jobs"}, headers=admin_headers)
        public = (await async_client.get(f"{SETTINGS}/")).json()["settings"]

        assert response.status_code == 200
        assert response.json()["message"] == "Settings updated"
        assert response.json()["settings"]["system_name"] == "Acme Careers"
        assert again.status_code == 200
        assert public["system_name"] == "Acme Jobs"
        assert public["primary_color"] == "#112233"

        actions = (await db_session.execute(
            select(AdminLog.action).where(AdminLog.action == "UPDATE_SETTINGS")
        )).scalars().all()
        assert len(actions) == 2

    async def test_unknown_setting_rejected(self, async_client: AsyncClient, admin_headers):
        response = await async_client.put(
            f"{SETTINGS}/", json={"theme": "dark", "favicon": "x.ico"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Unknown settings: favicon, theme"

    async def test_invalid_values_rejected(self, async_client: AsyncClient, admin_headers):
        blank = await async_client.put(f"{SETTINGS}/", json={"system_name": "  "}, headers=admin_headers)
        colour = await async_client.put(f"{SETTINGS}/", json={"primary_color": "blue"}, headers=admin_headers)
        empty = await async_client.put(f"{SETTINGS}/", json={}, headers=admin_headers)

        assert blank.json()["error"]["message"] == "system_name cannot be empty"
        assert colour.status_code == 400
        assert empty.json()["error"]["message"] == "No settings to update"

    async def test_only_admins_update(self, async_client: AsyncClient, manager_headers):
        response = await async_client.put(f"{SETTINGS}/", json={"system_name": "Mine"}, headers=manager_headers)

        assert response.status_code == 403


class TestEmailTemplates:
    async def test_lists_built_in_templates(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(f"{TEMPLATES}/", headers=admin_headers)

        assert response.status_code == 200
        templates = {t["key"]: t for t in response.json()["data"]}
        activation = templates["registration_activation"]
        assert activation["is_default"] is True
        assert activation["updated_at"] is None
        assert "activation_link" in activation["placeholders"]
        assert "<p" in activation["body_html"]

    async def test_edited_template_is_used_for_email(
        self, async_client: AsyncClient, db_session, manager_headers, outbox
    ):
        response = await async_client.put(
            f"{TEMPLATES}/registration_activation",
            json={
                "subject": "Welcome aboard, {{user_full_name}}",
                "body_text": "Hello {{user_full_name}}, activate here: {{activation_link}}",
            },
            headers=manager_headers,
        )
        await async_client.post(
            "/api/v1/auth/register",
            json={
                "firstName": "New",
                "lastName": "User",
                "email": "new.user@example.com",
                "password": "Str0ng!Pass",
                "confirmPassword": "Str0ng!Pass",
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["is_default"] is True
        assert data["title"] == "Registration & Activation"
        assert data["updated_at"] is not None
        assert outbox[-1]["subject"] == "Welcome aboard, New User"
        assert outbox[-1]["text"].startswith("Hello New User, activate here: ")

        stored = (await db_session.execute(
            select(EmailTemplate).where(EmailTemplate.key == "registration_activation")
        )).scalar_one()
        assert stored.placeholders == ["app_name", "user_full_name", "activation_link"]

    async def test_create_custom_template(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{TEMPLATES}/",
            json={
                "key": "interview_invite",
                "title": "Interview invitation",
                "subject": "Interview for {{job_title}}",
                "body_text": "We would like to meet you.",
                "placeholders": "job_title, applicant_name",
            },
            headers=admin_headers,
        )
        listed = (await async_client.get(f"{TEMPLATES}/", headers=admin_headers)).json()["data"]

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["is_default"] is False
        assert data["placeholders"] == ["job_title", "applicant_name"]
        assert listed[-1]["key"] == "interview_invite"

    async def test_duplicate_key_conflicts(self, async_client: AsyncClient, admin_headers):
        body = {"key": "auth_code", "title": "Copy", "subject": "S", "body_text": "B"}

        response = await async_client.post(f"{TEMPLATES}/", json=body, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "A template with this key already exists"

    async def test_invalid_key_rejected(self, async_client: AsyncClient, admin_headers):
        body = {"key": "Bad Key!", "title": "Bad", "subject": "S", "body_text": "B"}

        response = await async_client.post(f"{TEMPLATES}/", json=body, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid key format"

    async def test_blank_subject_rejected(self, async_client: AsyncClient, admin_headers):
        response = await async_client.put(
            f"{TEMPLATES}/auth_code", json={"subject": " ", "body_text": "B"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["issues"][0]["message"] == "subject is required"

    async def test_update_unknown_template(self, async_client: AsyncClient, admin_headers):
        response = await async_client.put(
            f"{TEMPLATES}/no_such_template", json={"subject": "S", "body_text": "B"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Email template not found"

    async def test_job_seekers_cannot_manage_templates(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.get(f"{TEMPLATES}/", headers=seeker_headers)

        assert response.status_code == 403
