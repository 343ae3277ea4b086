"""
Integration tests for job application API endpoints.

Tests applying, listing, the employer review flow, withdrawal and the
notifications each step sends.
"""

import uuid
from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy import select

from app.core.database import utcnow
from app.models.job import JobStatus
from app.models.notification import Notification, NotificationType

APPLICATIONS = "/api/v1/applications"


async def apply(client: AsyncClient, job, headers, **extra):
    body = {"job_id": str(job.id), **extra}
    return await client.post(f"{APPLICATIONS}/", json=body, headers=headers)


async def notifications_for(db_session, user):
    result = await db_session.execute(
        select(Notification).where(Notification.user_id == user.id).order_by(Notification.created_at)
    )
    return list(result.scalars())


class TestApply:
    async def test_apply_to_active_job(self, async_client: AsyncClient, test_job, job_seeker, seeker_headers):
        response = await apply(async_client, test_job, seeker_headers, cover_letter="Keen to join")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["job_id"] == str(test_job.id)
        assert data["applicant_id"] == str(job_seeker.id)
        assert data["cover_letter"] == "Keen to join"
        assert data["job_title"] == "Senior Python Developer"

    async def test_apply_notifies_employer_admins_and_applicant(
        self, async_client: AsyncClient, db_session, test_job, job_seeker, employer, admin_user,
        seeker_headers, outbox
    ):
        await apply(async_client, test_job, seeker_headers)

        employer_notes = await notifications_for(db_session, employer)
        admin_notes = await notifications_for(db_session, admin_user)
        seeker_notes = await notifications_for(db_session, job_seeker)

        assert [n.title for n in employer_notes] == ["New Application Received"]
        assert employer_notes[0].type == NotificationType.APPLICATION_RECEIVED
        assert employer_notes[0].data["action_url"] == f"/app/jobs/{test_job.id}/applications"
        assert [n.title for n in admin_notes] == ["New Job Application"]
        assert [n.title for n in seeker_notes] == ["Application Submitted"]

        assert [mail["to"] for mail in outbox] == ["seeker@example.com"]
        assert "Application received" in outbox[0]["subject"]

    async def test_apply_twice(self, async_client: AsyncClient, test_job, seeker_headers):
        await apply(async_client, test_job, seeker_headers)
        response = await apply(async_client, test_job, seeker_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "You have already applied to this job"

    async def test_apply_to_closed_job(self, async_client: AsyncClient, make_job, employer, seeker_headers):
        job = await make_job(employer, status=JobStatus.CLOSED)

        response = await apply(async_client, job, seeker_headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "This job is not accepting applications"

    async def test_apply_after_deadline(self, async_client: AsyncClient, make_job, employer, seeker_headers):
        job = await make_job(employer, application_deadline=utcnow() - timedelta(days=1))

        response = await apply(async_client, job, seeker_headers)

        assert response.status_code == 400

    async def test_apply_to_missing_job(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.post(
            f"{APPLICATIONS}/", json={"job_id": str(uuid.uuid4())}, headers=seeker_headers
        )

        assert response.status_code == 404

    async def test_employers_cannot_apply(self, async_client: AsyncClient, test_job, other_employer_headers):
        response = await apply(async_client, test_job, other_employer_headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Insufficient permissions"

    async def test_cannot_apply_to_own_job(self, async_client: AsyncClient, make_job, admin_user, admin_headers):
        job = await make_job(admin_user)

        response = await apply(async_client, job, admin_headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Employers cannot apply to their own jobs"


class TestListing:
    async def test_my_applications(self, async_client: AsyncClient, make_job, employer, seeker_headers):
        first = await make_job(employer, "First role")
        second = await make_job(employer, "Second role")
        await apply(async_client, first, seeker_headers)
        await apply(async_client, second, seeker_headers)

        newest = await async_client.get(f"{APPLICATIONS}/", headers=seeker_headers)
        oldest = await async_client.get(f"{APPLICATIONS}/", params={"sort": "oldest"}, headers=seeker_headers)

        assert newest.json()["pagination"]["total"] == 2
        assert [a["job_title"] for a in newest.json()["applications"]] == ["Second role", "First role"]
        assert [a["job_title"] for a in oldest.json()["applications"]] == ["First role", "Second role"]

    async def test_status_filter(self, async_client: AsyncClient, test_job, seeker_headers):
        await apply(async_client, test_job, seeker_headers)

        response = await async_client.get(f"{APPLICATIONS}/", params={"status": "accepted"}, headers=seeker_headers)

        assert response.json()["applications"] == []

    async def test_employer_sees_applications_to_own_jobs(
        self, async_client: AsyncClient, make_job, employer, other_employer, seeker_headers, employer_headers
    ):
        mine = await make_job(employer, "Mine")
        theirs = await make_job(other_employer, "Theirs")
        await apply(async_client, mine, seeker_headers)
        await apply(async_client, theirs, seeker_headers)

        response = await async_client.get(f"{APPLICATIONS}/employer/jobs", headers=employer_headers)

        apps = response.json()["applications"]
        assert [a["job_title"] for a in apps] == ["Mine"]
        assert apps[0]["applicant_email"] == "seeker@example.com"

    async def test_job_seekers_cannot_use_employer_view(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.get(f"{APPLICATIONS}/employer/jobs", headers=seeker_headers)

        assert response.status_code == 403


class TestReview:
    async def test_employer_updates_status(
        self, async_client: AsyncClient, db_session, test_job, job_seeker, employer, seeker_headers,
        employer_headers, outbox
    ):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        response = await async_client.put(
            f"{APPLICATIONS}/{application_id}/status",
            json={"status": "rejected", "notes": "Not enough experience"},
            headers=employer_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "rejected"
        assert data["reviewed_by"] == str(employer.id)
        assert data["reviewed_at"] is not None

        latest = (await notifications_for(db_session, job_seeker))[-1]
        assert latest.title == "Application Status Update"
        assert latest.data["status"] == "rejected"
        assert "Update on your application" in outbox[-1]["subject"]

    async def test_status_must_be_a_review_status(self, async_client: AsyncClient, test_job, seeker_headers,
                                                  employer_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        response = await async_client.put(
            f"{APPLICATIONS}/{application_id}/status", json={"status": "withdrawn"}, headers=employer_headers
        )

        assert response.status_code == 400

    async def test_other_employer_cannot_review(self, async_client: AsyncClient, test_job, seeker_headers,
                                                other_employer_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        response = await async_client.put(
            f"{APPLICATIONS}/{application_id}/status", json={"status": "accepted"}, headers=other_employer_headers
        )

        assert response.status_code == 403

    async def test_view_hides_employer_fields_from_applicant(
        self, async_client: AsyncClient, test_job, seeker_headers, employer_headers, other_employer_headers
    ):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        as_applicant = (await async_client.get(f"{APPLICATIONS}/{application_id}", headers=seeker_headers)).json()
        as_employer = (await async_client.get(f"{APPLICATIONS}/{application_id}", headers=employer_headers)).json()
        stranger = await async_client.get(f"{APPLICATIONS}/{application_id}", headers=other_employer_headers)

        assert "employer_email" not in as_applicant
        assert "notes" not in as_applicant
        assert as_applicant["job_title"] == "Senior Python Developer"
        assert as_employer["employer_email"] == "employer@example.com"
        assert as_employer["applicant_email"] == "seeker@example.com"
        assert stranger.status_code == 403


class TestWithdraw:
    async def test_withdraw(self, async_client: AsyncClient, test_job, seeker_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        response = await async_client.delete(f"{APPLICATIONS}/{application_id}", headers=seeker_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Application withdrawn successfully"
        assert body["application"]["status"] == "withdrawn"
        assert body["application"]["withdrawn_at"] is not None

    async def test_cannot_withdraw_decided_application(self, async_client: AsyncClient, test_job, seeker_headers,
                                                       employer_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]
        await async_client.put(
            f"{APPLICATIONS}/{application_id}/status", json={"status": "accepted"}, headers=employer_headers
        )

        response = await async_client.delete(f"{APPLICATIONS}/{application_id}", headers=seeker_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Cannot withdraw application with status 'accepted'"

    async def test_withdrawn_application_cannot_be_reviewed(self, async_client: AsyncClient, test_job,
                                                            seeker_headers, employer_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]
        await async_client.delete(f"{APPLICATIONS}/{application_id}", headers=seeker_headers)

        response = await async_client.put(
            f"{APPLICATIONS}/{application_id}/status", json={"status": "reviewed"}, headers=employer_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Cannot update a withdrawn application"

    async def test_only_applicant_withdraws(self, async_client: AsyncClient, test_job, seeker_headers,
                                            employer_headers):
        application_id = (await apply(async_client, test_job, seeker_headers)).json()["id"]

        response = await async_client.delete(f"{APPLICATIONS}/{application_id}", headers=employer_headers)

        assert response.status_code == 403
