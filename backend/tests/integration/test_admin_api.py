"""
Integration tests for the admin dashboard and role/permission management.
"""

import uuid

from httpx import AsyncClient
from sqlalchemy import select

from app.core.permissions import RoleName
from app.models.application import Application
from app.models.audit import AdminLog
from app.models.job import JobStatus

ADMIN = "/api/v1/admin"
RBAC = f"{ADMIN}/rbac"


async def admin_actions(db_session):
    result = await db_session.execute(select(AdminLog.action).order_by(AdminLog.created_at))
    return list(result.scalars())


class TestUserModeration:
    async def test_list_users_with_roles_and_summary(self, async_client: AsyncClient, job_seeker, employer,
                                                     admin_headers):
        response = await async_client.get(f"{ADMIN}/users", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == {"total_users": 3, "active_users": 3, "blocked_users": 0}
        roles = {u["email"]: u["roles"] for u in body["users"]}
        assert roles["seeker@example.com"] == ["JOB_SEEKER"]
        assert "password_hash" not in body["users"][0]

    async def test_filters(self, async_client: AsyncClient, job_seeker, employer, admin_headers):
        by_role = await async_client.get(f"{ADMIN}/users", params={"role": "employer"}, headers=admin_headers)
        by_search = await async_client.get(f"{ADMIN}/users", params={"search": "sam"}, headers=admin_headers)
        by_email = await async_client.get(
            f"{ADMIN}/users", params={"sort_by": "email", "sort_order": "asc"}, headers=admin_headers
        )

        assert [u["email"] for u in by_role.json()["users"]] == ["employer@example.com"]
        assert [u["email"] for u in by_search.json()["users"]] == ["seeker@example.com"]
        assert [u["email"] for u in by_email.json()["users"]] == [
            "admin@example.com", "employer@example.com", "seeker@example.com"
        ]

    async def test_get_user_detail(self, async_client: AsyncClient, test_job, employer, admin_headers):
        response = await async_client.get(f"{ADMIN}/users/{employer.id}", headers=admin_headers)

        user = response.json()["user"]
        assert user["roles"] == ["EMPLOYER"]
        assert user["jobs_posted"] == 1
        assert user["applications_submitted"] == 0

    async def test_get_missing_user(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(f"{ADMIN}/users/{uuid.uuid4()}", headers=admin_headers)

        assert response.status_code == 404

    async def test_block_and_unblock(self, async_client: AsyncClient, db_session, job_seeker, admin_headers,
                                     seeker_headers):
        blocked = await async_client.put(
            f"{ADMIN}/users/{job_seeker.id}/block", json={"block": True, "reason": "Spam"}, headers=admin_headers
        )
        locked_out = await async_client.get("/api/v1/users/me", headers=seeker_headers)
        unblocked = await async_client.put(
            f"{ADMIN}/users/{job_seeker.id}/block", json={"block": False}, headers=admin_headers
        )

        assert blocked.json()["user"]["is_blocked"] is True
        assert blocked.json()["user"]["block_reason"] == "Spam"
        assert locked_out.status_code == 401
        assert unblocked.json()["message"] == "User unblocked successfully"
        assert unblocked.json()["user"]["block_reason"] is None
        assert await admin_actions(db_session) == ["BLOCK_USER", "UNBLOCK_USER"]

    async def test_block_needs_reason(self, async_client: AsyncClient, job_seeker, admin_headers):
        response = await async_client.put(
            f"{ADMIN}/users/{job_seeker.id}/block", json={"block": True, "reason": "  "}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Reason is required when blocking a user"

    async def test_cannot_block_self(self, async_client: AsyncClient, admin_user, admin_headers):
        response = await async_client.put(
            f"{ADMIN}/users/{admin_user.id}/block", json={"block": True, "reason": "x"}, headers=admin_headers
        )

        assert response.status_code == 400

    async def test_admin_role_required(self, async_client: AsyncClient, manager_headers):
        response = await async_client.get(f"{ADMIN}/users", headers=manager_headers)

        assert response.status_code == 403


class TestJobModeration:
    async def test_list_jobs_in_every_status(self, async_client: AsyncClient, make_job, employer, admin_headers):
        await make_job(employer, "Open role", is_featured=True)
        await make_job(employer, "Draft role", status=JobStatus.DRAFT)

        everything = await async_client.get(f"{ADMIN}/jobs", headers=admin_headers)
        drafts = await async_client.get(f"{ADMIN}/jobs", params={"status": "draft"}, headers=admin_headers)

        body = everything.json()
        assert body["summary"] == {"total_jobs": 2, "active_jobs": 1, "featured_jobs": 1}
        assert body["jobs"][0]["employer_email"] == "employer@example.com"
        assert [j["title"] for j in drafts.json()["jobs"]] == ["Draft role"]

    async def test_feature_job(self, async_client: AsyncClient, db_session, test_job, admin_headers):
        response = await async_client.post(f"{ADMIN}/jobs/{test_job.id}/feature", json={}, headers=admin_headers)
        unfeatured = await async_client.post(
            f"{ADMIN}/jobs/{test_job.id}/feature", json={"featured": False}, headers=admin_headers
        )

        assert response.json()["job"]["is_featured"] is True
        assert unfeatured.json()["message"] == "Job unfeatured successfully"
        assert await admin_actions(db_session) == ["FEATURE_JOB", "UNFEATURE_JOB"]

    async def test_delete_job_removes_applications(self, async_client: AsyncClient, db_session, test_job,
                                                   job_seeker, admin_headers):
        job_id = test_job.id
        db_session.add(Application(job_id=test_job.id, applicant_id=job_seeker.id))
        await db_session.commit()

        response = await async_client.delete(f"{ADMIN}/jobs/{test_job.id}", headers=admin_headers)
        again = await async_client.delete(f"{ADMIN}/jobs/{test_job.id}", headers=admin_headers)

        assert response.json()["job"]["title"] == "Senior Python Developer"
        assert again.status_code == 404
        db_session.expire_all()
        remaining = await db_session.execute(select(Application).where(Application.job_id == job_id))
        assert remaining.first() is None


class TestStatisticsAndLogs:
    async def test_statistics(self, async_client: AsyncClient, test_job, test_company, job_seeker, admin_headers):
        response = await async_client.get(f"{ADMIN}/statistics", headers=admin_headers)

        stats = response.json()
        assert stats["users"]["total"] == 4
        assert stats["users"]["by_role"][RoleName.JOB_SEEKER.value] == 1
        assert stats["users"]["by_role"][RoleName.HR.value] == 0
        assert stats["jobs"]["active"] == 1
        assert stats["applications"]["total"] == 0
        assert stats["companies"] == {"total": 1, "active": 1}
        assert stats["system"]["environment"] == "testing"

    async def test_audit_log_listing(self, async_client: AsyncClient, test_job, admin_headers):
        await async_client.post(f"{ADMIN}/jobs/{test_job.id}/feature", json={}, headers=admin_headers)

        response = await async_client.get(
            f"{ADMIN}/audit-logs", params={"action": "FEATURE_JOB"}, headers=admin_headers
        )

        logs = response.json()["logs"]
        assert response.json()["pagination"]["total"] == 1
        assert logs[0]["target_id"] == str(test_job.id)
        assert logs[0]["admin_email"] == "admin@example.com"
        assert logs[0]["details"] == {"title": "Senior Python Developer"}


class TestRoleManagement:
    async def test_list_roles_with_permissions(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(f"{RBAC}/roles", headers=admin_headers)

        roles = {r["name"]: r for r in response.json()["roles"]}
        assert set(roles) == {role.value for role in RoleName}
        assert roles["JOB_SEEKER"]["permissions"] == ["APPLY_JOB"]
        assert roles["ADMIN"]["is_system"] is True

    async def test_custom_role_lifecycle(self, async_client: AsyncClient, db_session, admin_headers):
        created = await async_client.post(
            f"{RBAC}/roles", json={"name": " recruiter ", "description": "Agency recruiters"}, headers=admin_headers
        )
        role_id = created.json()["role"]["id"]

        duplicate = await async_client.post(f"{RBAC}/roles", json={"name": "RECRUITER"}, headers=admin_headers)
        granted = await async_client.put(
            f"{RBAC}/roles/{role_id}/permissions",
            json={"permissions": ["view_applications", "CREATE_JOB"]},
            headers=admin_headers,
        )
        renamed = await async_client.put(f"{RBAC}/roles/{role_id}", json={"name": "talent"}, headers=admin_headers)
        deleted = await async_client.delete(f"{RBAC}/roles/{role_id}", headers=admin_headers)

        assert created.status_code == 201
        assert created.json()["role"]["name"] == "RECRUITER"
        assert duplicate.status_code == 409
        assert granted.json()["permissions"] == ["CREATE_JOB", "VIEW_APPLICATIONS"]
        assert renamed.json()["role"]["name"] == "TALENT"
        assert deleted.json() == {"message": "Role deleted successfully"}
        assert await admin_actions(db_session) == [
            "CREATE_ROLE", "SET_ROLE_PERMISSIONS", "UPDATE_ROLE", "DELETE_ROLE"
        ]

    async def test_system_roles_are_protected(self, async_client: AsyncClient, admin_headers):
        roles = (await async_client.get(f"{RBAC}/roles", headers=admin_headers)).json()["roles"]
        admin_role = next(r for r in roles if r["name"] == "ADMIN")

        renamed = await async_client.put(f"{RBAC}/roles/{admin_role['id']}", json={"name": "ROOT"},
                                         headers=admin_headers)
        deleted = await async_client.delete(f"{RBAC}/roles/{admin_role['id']}", headers=admin_headers)

        assert renamed.status_code == 400
        assert deleted.status_code == 400
        assert deleted.json()["error"]["message"] == "System roles cannot be deleted"

    async def test_unknown_permissions_rejected(self, async_client: AsyncClient, admin_headers):
        role_id = (await async_client.post(f"{RBAC}/roles", json={"name": "AUDITOR"},
                                           headers=admin_headers)).json()["role"]["id"]

        response = await async_client.put(
            f"{RBAC}/roles/{role_id}/permissions", json={"permissions": ["FLY"]}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Unknown permissions: FLY"

    async def test_create_permission(self, async_client: AsyncClient, admin_headers):
        created = await async_client.post(
            f"{RBAC}/permissions", json={"name": "export_reports", "category": "reports"}, headers=admin_headers
        )
        duplicate = await async_client.post(f"{RBAC}/permissions", json={"name": "EXPORT_REPORTS"},
                                            headers=admin_headers)
        listing = await async_client.get(f"{RBAC}/permissions", headers=admin_headers)

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert "EXPORT_REPORTS" in {p["name"] for p in listing.json()["permissions"]}

    async def test_manage_users_permission_required(self, async_client: AsyncClient, manager_headers):
        response = await async_client.get(f"{RBAC}/roles", headers=manager_headers)

        assert response.status_code == 403


class TestUserGrants:
    async def test_replace_user_roles(self, async_client: AsyncClient, job_seeker, admin_headers):
        response = await async_client.put(
            f"{RBAC}/users/{job_seeker.id}/roles", json={"roles": ["hr", "JOB_SEEKER"]}, headers=admin_headers
        )
        current = await async_client.get(f"{RBAC}/users/{job_seeker.id}/roles", headers=admin_headers)

        assert response.json()["roles"] == ["HR", "JOB_SEEKER"]
        assert current.json()["roles"] == ["HR", "JOB_SEEKER"]

    async def test_unknown_roles_rejected(self, async_client: AsyncClient, job_seeker, admin_headers):
        response = await async_client.put(
            f"{RBAC}/users/{job_seeker.id}/roles", json={"roles": ["WIZARD"]}, headers=admin_headers
        )

        assert response.status_code == 400

    async def test_direct_grant_and_revoke(self, async_client: AsyncClient, job_seeker, admin_headers,
                                           seeker_headers):
        granted = await async_client.post(
            f"{RBAC}/users/{job_seeker.id}/permissions", json={"permission": "create_company"}, headers=admin_headers
        )
        again = await async_client.post(
            f"{RBAC}/users/{job_seeker.id}/permissions", json={"permission": "CREATE_COMPANY"}, headers=admin_headers
        )
        effective = await async_client.get(f"{RBAC}/users/{job_seeker.id}/permissions", headers=admin_headers)
        posted = await async_client.post("/api/v1/companies/", json={"name": "Sam Ltd"}, headers=seeker_headers)

        assert granted.status_code == 201
        assert again.status_code == 409
        assert effective.json()["permissions"] == ["APPLY_JOB", "CREATE_COMPANY"]
        assert effective.json()["direct_permissions"] == ["CREATE_COMPANY"]
        assert posted.status_code == 201

        revoked = await async_client.delete(
            f"{RBAC}/users/{job_seeker.id}/permissions/create_company", headers=admin_headers
        )
        missing = await async_client.delete(
            f"{RBAC}/users/{job_seeker.id}/permissions/CREATE_COMPANY", headers=admin_headers
        )

        assert revoked.json()["message"] == "Permission revoked"
        assert missing.status_code == 404

    async def test_grant_to_unknown_user(self, async_client: AsyncClient, admin_headers):
        response = await async_client.post(
            f"{RBAC}/users/{uuid.uuid4()}/permissions", json={"permission": "CREATE_JOB"}, headers=admin_headers
        )

        assert response.status_code == 404
