"""
Integration tests for document upload and management endpoints.
"""

import io
import uuid
from pathlib import Path

import pytest
from httpx import AsyncClient
from starlette.datastructures import Headers, UploadFile

from app.core.config import settings
from app.services import document_service
from app.services.document_service import DocumentService

DOCUMENTS = "/api/v1/documents"
PDF = ("cv.pdf", b"%PDF-1.4 test resume", "application/pdf")


async def upload(client: AsyncClient, headers, file=PDF, **form):
    return await client.post(f"{DOCUMENTS}/upload", files={"document": file}, data=form, headers=headers)


class TestUpload:
    async def test_upload_stores_file_and_serves_it(self, async_client: AsyncClient, job_seeker, seeker_headers):
        response = await upload(async_client, seeker_headers, document_type="resume", description="Main CV")

        assert response.status_code == 201
        data = response.json()["data"]
        document = data["document"]
        assert document["user_id"] == str(job_seeker.id)
        assert document["original_name"] == "cv.pdf"
        assert document["mime_type"] == "application/pdf"
        assert document["file_size"] == len(PDF[1])
        assert document["document_type"] == "resume"
        assert data["url"].startswith("/uploads/documents/")
        assert "file_path" not in document

        served = await async_client.get(data["url"])
        assert served.status_code == 200
        assert served.content == PDF[1]

    async def test_images_go_to_their_own_folder(self, async_client: AsyncClient, seeker_headers):
        response = await upload(async_client, seeker_headers, file=("me.png", b"\x89PNG", "image/png"))

        assert response.json()["data"]["url"].startswith("/uploads/images/")

    async def test_type_defaults_to_general(self, async_client: AsyncClient, seeker_headers):
        response = await upload(async_client, seeker_headers)

        assert response.json()["data"]["document"]["document_type"] == "general"

    async def test_missing_file(self, async_client: AsyncClient, seeker_headers):
        response = await async_client.post(f"{DOCUMENTS}/upload", data={"document_type": "resume"},
                                           headers=seeker_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No file uploaded"

    async def test_disallowed_type(self, async_client: AsyncClient, seeker_headers):
        response = await upload(async_client, seeker_headers, file=("run.sh", b"#!/bin/sh", "application/x-sh"))

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid file type"

    async def test_too_large(self, async_client: AsyncClient, seeker_headers, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size", 10)

        response = await upload(async_client, seeker_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "File too large"

    async def test_requires_login(self, async_client: AsyncClient):
        response = await async_client.post(f"{DOCUMENTS}/upload", files={"document": PDF})

        assert response.status_code == 401

    async def test_upload_multiple(self, async_client: AsyncClient, seeker_headers):
        files = [
            ("documents", ("a.pdf", b"%PDF a", "application/pdf")),
            ("documents", ("b.txt", b"plain", "text/plain")),
        ]

        response = await async_client.post(f"{DOCUMENTS}/upload/multiple", files=files,
                                           data={"document_type": "certificate"}, headers=seeker_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["count"] == 2
        assert {d["document_type"] for d in data["documents"]} == {"certificate"}

    async def test_upload_multiple_rejects_whole_batch(self, async_client: AsyncClient, seeker_headers):
        files = [
            ("documents", ("a.pdf", b"%PDF a", "application/pdf")),
            ("documents", ("bad.exe", b"MZ", "application/x-msdownload")),
        ]

        response = await async_client.post(f"{DOCUMENTS}/upload/multiple", files=files, headers=seeker_headers)
        listing = await async_client.get(f"{DOCUMENTS}/my-documents", headers=seeker_headers)

        assert response.status_code == 400
        assert listing.json()["data"] == []

    async def test_upload_multiple_limit(self, async_client: AsyncClient, seeker_headers, monkeypatch):
        monkeypatch.setattr(settings, "max_files_per_request", 1)
        files = [("documents", PDF), ("documents", PDF)]

        response = await async_client.post(f"{DOCUMENTS}/upload/multiple", files=files, headers=seeker_headers)

        assert response.status_code == 400


class TestManage:
    async def test_list_primary_first_and_filter(self, async_client: AsyncClient, seeker_headers):
        await upload(async_client, seeker_headers, document_type="resume")
        await upload(async_client, seeker_headers, document_type="resume", is_primary="true")
        await upload(async_client, seeker_headers, document_type="id")

        everything = (await async_client.get(f"{DOCUMENTS}/my-documents", headers=seeker_headers)).json()["data"]
        resumes = (await async_client.get(
            f"{DOCUMENTS}/my-documents", params={"type": "resume"}, headers=seeker_headers
        )).json()["data"]

        assert len(everything) == 3
        assert everything[0]["is_primary"] is True
        assert len(resumes) == 2

    async def test_new_primary_replaces_old(self, async_client: AsyncClient, seeker_headers):
        first = (await upload(async_client, seeker_headers, document_type="resume", is_primary="true")).json()
        second = (await upload(async_client, seeker_headers, document_type="resume")).json()
        second_id = second["data"]["document"]["id"]

        response = await async_client.patch(
            f"{DOCUMENTS}/{second_id}/primary", json={"document_type": "resume"}, headers=seeker_headers
        )
        old = await async_client.get(f"{DOCUMENTS}/{first['data']['document']['id']}", headers=seeker_headers)

        assert response.json()["data"]["is_primary"] is True
        assert old.json()["data"]["is_primary"] is False

    async def test_update_metadata(self, async_client: AsyncClient, seeker_headers):
        document_id = (await upload(async_client, seeker_headers)).json()["data"]["document"]["id"]

        response = await async_client.patch(
            f"{DOCUMENTS}/{document_id}", json={"description": "Updated"}, headers=seeker_headers
        )

        assert response.json()["data"]["description"] == "Updated"
        assert response.json()["data"]["document_type"] == "general"

    async def test_update_rejects_null_type(self, async_client: AsyncClient, seeker_headers):
        document_id = (await upload(async_client, seeker_headers)).json()["data"]["document"]["id"]

        response = await async_client.patch(
            f"{DOCUMENTS}/{document_id}", json={"document_type": None}, headers=seeker_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["issues"] == [
            {"path": "document_type", "message": "document_type cannot be null"}
        ]

    async def test_delete_removes_row_and_file(self, async_client: AsyncClient, seeker_headers):
        data = (await upload(async_client, seeker_headers)).json()["data"]

        response = await async_client.delete(f"{DOCUMENTS}/{data['document']['id']}", headers=seeker_headers)
        gone = await async_client.get(f"{DOCUMENTS}/{data['document']['id']}", headers=seeker_headers)
        served = await async_client.get(data["url"])

        assert response.status_code == 200
        assert gone.status_code == 404
        assert served.status_code == 404

    async def test_documents_are_private(self, async_client: AsyncClient, seeker_headers, employer_headers):
        document_id = (await upload(async_client, seeker_headers)).json()["data"]["document"]["id"]

        response = await async_client.get(f"{DOCUMENTS}/{document_id}", headers=employer_headers)

        assert response.status_code == 404


class TestCompanyDocuments:
    async def test_member_uploads_and_lists(self, async_client: AsyncClient, test_company, hr_manager,
                                            manager_headers):
        response = await async_client.post(
            f"{DOCUMENTS}/company/{test_company.id}/upload",
            files={"document": PDF},
            data={"document_type": "registration"},
            headers=manager_headers,
        )
        listing = await async_client.get(f"{DOCUMENTS}/company/{test_company.id}/documents", headers=manager_headers)

        assert response.status_code == 201
        document = response.json()["data"]["document"]
        assert document["company_id"] == str(test_company.id)
        assert document["user_id"] is None
        assert document["uploaded_by"] == str(hr_manager.id)
        assert [d["id"] for d in listing.json()["data"]] == [document["id"]]

    async def test_admin_has_access(self, async_client: AsyncClient, test_company, admin_headers):
        response = await async_client.get(f"{DOCUMENTS}/company/{test_company.id}/documents", headers=admin_headers)

        assert response.status_code == 200

    async def test_non_member_denied(self, async_client: AsyncClient, test_company, employer_headers):
        listing = await async_client.get(f"{DOCUMENTS}/company/{test_company.id}/documents", headers=employer_headers)
        uploading = await async_client.post(
            f"{DOCUMENTS}/company/{test_company.id}/upload", files={"document": PDF}, headers=employer_headers
        )

        assert listing.status_code == 403
        assert uploading.status_code == 403

    async def test_unknown_company(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get(f"{DOCUMENTS}/company/{uuid.uuid4()}/documents", headers=admin_headers)

        assert response.status_code == 404


def pdf_upload(name="cv.pdf"):
    return UploadFile(io.BytesIO(PDF[1]), filename=name, headers=Headers({"content-type": "application/pdf"}))

def stored_files(root: Path):
    return [p for p in root.rglob("*") if p.is_file()]


class TestFailedUploadsLeaveNoFiles:
    @pytest.fixture
    def upload_root(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
        return tmp_path

    async def test_rejected_batch_writes_nothing(self, async_client: AsyncClient, seeker_headers, upload_root):
        files = [
            ("documents", ("a.pdf", b"%PDF a", "application/pdf")),
            ("documents", ("b.exe", b"MZ", "application/x-msdownload")),
        ]

        response = await async_client.post(f"{DOCUMENTS}/upload/multiple", files=files, headers=seeker_headers)

        assert response.status_code == 400
        assert stored_files(upload_root) == []

    async def test_oversized_file_later_in_batch_writes_nothing(self, async_client: AsyncClient, seeker_headers,
                                                                 upload_root, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size", 10)
        files = [
            ("documents", ("a.pdf", b"%PDF", "application/pdf")),
            ("documents", ("b.pdf", b"%PDF-1.4 far too large", "application/pdf")),
        ]

        response = await async_client.post(f"{DOCUMENTS}/upload/multiple", files=files, headers=seeker_headers)

        assert response.json()["error"]["message"] == "File too large"
        assert stored_files(upload_root) == []

    async def test_failed_write_removes_earlier_files(self, db_session, job_seeker, upload_root, monkeypatch):
        real_save = document_service.save_file_async
        calls = []

        async def flaky_save(content, filename, subdir):
            calls.append(filename)
            if len(calls) == 2:
                raise IOError("Failed to save file: disk full")
            return await real_save(content, filename, subdir)

        monkeypatch.setattr(document_service, "save_file_async", flaky_save)

        with pytest.raises(IOError):
            await DocumentService(db_session).upload_many(job_seeker.id, [pdf_upload(), pdf_upload()])

        assert len(calls) == 2
        assert stored_files(upload_root) == []

    async def test_failed_commit_removes_the_file(self, db_session, job_seeker, upload_root, monkeypatch):
        async def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(RuntimeError):
            await DocumentService(db_session).upload(job_seeker.id, pdf_upload())

        assert stored_files(upload_root) == []
