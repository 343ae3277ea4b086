"""
Integration tests for the job seeker profile endpoints.
"""

import uuid

import pytest
from httpx import AsyncClient

PROFILE = "/api/v1/job-seeker"


class TestProfileSections:
    async def test_profile_exists_after_registration(self, async_client: AsyncClient, job_seeker, seeker_headers):
        response = await async_client.get(f"{PROFILE}/profile", headers=seeker_headers)

        assert response.status_code == 200
        profile = response.json()["profile"]
        assert profile["user_id"] == str(job_seeker.id)
        assert profile["professional_summary"] is None

    async def test_put_replaces_profile(self, async_client: AsyncClient, seeker_headers):
        await async_client.put(
            f"{PROFILE}/profile",
            json={"professionalSummary": "Backend developer", "yearsExperience": 4},
            headers=seeker_headers,
        )
        response = await async_client.put(
            f"{PROFILE}/profile", json={"fieldOfExpertise": "Software"}, headers=seeker_headers
        )

        profile = response.json()["profile"]
        assert profile["field_of_expertise"] == "Software"
        assert profile["professional_summary"] is None
        assert profile["years_experience"] is None

    async def test_profile_validation(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.put(f"{PROFILE}/profile", json={"yearsExperience": -1}, headers=seeker_headers)

        assert response.status_code == 400
        assert response.json()["error"]["issues"][0]["path"] == "yearsExperience"

    async def test_personal_details_created_on_first_put(self, async_client: AsyncClient, seeker_headers):
        before = await async_client.get(f"{PROFILE}/personal-details", headers=seeker_headers)
        response = await async_client.put(
            f"{PROFILE}/personal-details",
            json={"firstName": "Sam", "dateOfBirth": "1994-05-01", "disabilityStatus": False},
            headers=seeker_headers,
        )

        assert before.json() == {"personalDetails": None}
        details = response.json()["personalDetails"]
        assert details["first_name"] == "Sam"
        assert details["date_of_birth"] == "1994-05-01"
        assert details["disability_status"] is False

    async def test_profile_prefix_alias(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.get("/api/v1/profile/profile", headers=seeker_headers)

        assert response.status_code == 200

    async def test_requires_login(self, async_client: AsyncClient):
        response = await async_client.get(f"{PROFILE}/full-profile")

        assert response.status_code == 401


class TestCollections:
    async def test_new_primary_address_demotes_old_one(self, async_client: AsyncClient, seeker_headers):
        first = await async_client.post(
            f"{PROFILE}/addresses", json={"city": "Cape Town", "country": "South Africa"}, headers=seeker_headers
        )
        await async_client.post(f"{PROFILE}/addresses", json={"city": "Durban"}, headers=seeker_headers)

        response = await async_client.get(f"{PROFILE}/addresses", headers=seeker_headers)

        assert first.status_code == 201
        assert first.json()["address"]["is_primary"] is True
        addresses = response.json()["addresses"]
        assert [(a["city"], a["is_primary"]) for a in addresses] == [("Durban", True), ("Cape Town", False)]

    async def test_set_primary_address(self, async_client: AsyncClient, seeker_headers):
        cape_town = (await async_client.post(
            f"{PROFILE}/addresses", json={"city": "Cape Town"}, headers=seeker_headers
        )).json()["address"]
        await async_client.post(f"{PROFILE}/addresses", json={"city": "Durban"}, headers=seeker_headers)

        response = await async_client.patch(f"{PROFILE}/addresses/{cape_town['id']}/primary", headers=seeker_headers)
        addresses = (await async_client.get(f"{PROFILE}/addresses", headers=seeker_headers)).json()["addresses"]

        assert response.status_code == 200
        assert response.json()["address"]["is_primary"] is True
        assert [(a["city"], a["is_primary"]) for a in addresses] == [("Cape Town", True), ("Durban", False)]

    async def test_set_primary_on_someone_elses_address(self, async_client: AsyncClient, seeker_headers,
                                                        employer_headers):
        address = (await async_client.post(
            f"{PROFILE}/addresses", json={"city": "Cape Town"}, headers=seeker_headers
        )).json()["address"]

        response = await async_client.patch(f"{PROFILE}/addresses/{address['id']}/primary", headers=employer_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Address not found"

    async def test_education_lifecycle(self, async_client: AsyncClient, seeker_headers):
        created = await async_client.post(
            f"{PROFILE}/education",
            json={"institutionName": "UCT", "qualification": "BSc", "startDate": "2012-02-01"},
            headers=seeker_headers,
        )
        record_id = created.json()["education"]["id"]

        updated = await async_client.put(
            f"{PROFILE}/education/{record_id}",
            json={"institutionName": "UCT", "qualification": "BSc Hons", "isCurrent": True},
            headers=seeker_headers,
        )
        deleted = await async_client.delete(f"{PROFILE}/education/{record_id}", headers=seeker_headers)
        listing = await async_client.get(f"{PROFILE}/education", headers=seeker_headers)

        assert updated.json()["education"]["qualification"] == "BSc Hons"
        assert updated.json()["education"]["start_date"] is None
        assert deleted.json() == {"message": "Education record deleted"}
        assert listing.json() == {"education": []}

    async def test_required_fields(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.post(
            f"{PROFILE}/experience", json={"companyName": "Acme"}, headers=seeker_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["issues"][0]["path"] == "jobTitle"

    async def test_reference_email_is_validated(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.post(
            f"{PROFILE}/references", json={"fullName": "Pat Ref", "email": "not-an-email"}, headers=seeker_headers
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "kind,label",
        [
            ("addresses", "Address"),
            ("education", "Education record"),
            ("experience", "Experience record"),
            ("references", "Reference"),
        ],
    )
    async def test_missing_record(self, async_client: AsyncClient, seeker_headers, kind, label):
        response = await async_client.delete(f"{PROFILE}/{kind}/{uuid.uuid4()}", headers=seeker_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == f"{label} not found"

    async def test_records_are_private(self, async_client: AsyncClient, seeker_headers, employer_headers):
        created = await async_client.post(
            f"{PROFILE}/references", json={"fullName": "Pat Ref"}, headers=seeker_headers
        )

        response = await async_client.delete(
            f"{PROFILE}/references/{created.json()['reference']['id']}", headers=employer_headers
        )

        assert response.status_code == 404

    async def test_full_profile(self, async_client: AsyncClient, seeker_headers):
        await async_client.post(
            f"{PROFILE}/experience", json={"companyName": "Acme", "jobTitle": "Engineer"}, headers=seeker_headers
        )

        response = await async_client.get(f"{PROFILE}/full-profile", headers=seeker_headers)

        body = response.json()
        assert set(body) == {"profile", "personalDetails", "addresses", "education", "experience", "references"}
        assert [e["job_title"] for e in body["experience"]] == ["Engineer"]
        assert body["addresses"] == []
