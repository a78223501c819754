"""
Group file storage: upload with orphan cleanup, signed links, download and delete.
"""
import pytest
from fastapi import HTTPException

from stdntlab.config import settings
from stdntlab.modules.files.service import FileService, build_storage_path, sanitize_file_name
from tests.fakes import bearer


@pytest.fixture()
def service(db):
    return FileService(db)


def _objects(db):
    return db.storage.objects.get(settings.storage_bucket, {})


class TestPaths:

    def test_sanitize(self):
        assert sanitize_file_name("lecture notes (v2).pdf") == "lecture_notes__v2_.pdf"
        assert sanitize_file_name("ok-name_1.txt") == "ok-name_1.txt"

    def test_storage_path(self):
        assert build_storage_path(3, 7, "my file.pdf", timestamp_ms=1700000000000) == "3/7/1700000000000-my_file.pdf"


class TestUpload:

    def test_upload_stores_object_and_row(self, service, db, group):
        result = service.upload_file(1, 2, "week 1.pdf", b"%PDF-1.4", "application/pdf")

        assert result.path.startswith("1/2/")
        assert result.path.endswith("-week_1.pdf")
        assert result.file_name == "week 1.pdf"
        assert result.size == 8
        assert _objects(db)[result.path] == b"%PDF-1.4"
        assert db.storage.upload_options[-1] == {
            "cache-control": "3600", "content-type": "application/pdf", "upsert": "false"
        }

    def test_too_large(self, service, db, group, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size_bytes", 4)
        with pytest.raises(HTTPException) as exc:
            service.upload_file(1, 2, "a.txt", b"12345")
        assert exc.value.status_code == 413
        assert _objects(db) == {}

    def test_row_failure_removes_object(self, service, db, group):
        db.fail("files", "insert")
        with pytest.raises(HTTPException) as exc:
            service.upload_file(1, 2, "a.txt", b"hello")
        assert exc.value.status_code == 500
        assert _objects(db) == {}
        assert db.rows("files") == []

    def test_storage_failure_writes_no_row(self, service, db, group):
        db.storage.fail("upload")
        with pytest.raises(HTTPException):
            service.upload_file(1, 2, "a.txt", b"hello")
        assert db.rows("files") == []


class TestAccess:

    def test_signed_url(self, service, db, group):
        uploaded = service.upload_file(1, 2, "a.txt", b"hello")
        signed = service.get_signed_url(uploaded.id)
        assert signed.expires_in == settings.signed_url_expiry_seconds
        assert uploaded.path in signed.url

    def test_delete_keeps_going_when_storage_fails(self, service, db, group):
        uploaded = service.upload_file(1, 2, "a.txt", b"hello")
        db.storage.fail("remove")
        assert service.delete_file(uploaded.id) is True
        assert db.rows("files") == []

    def test_delete_removes_by_path(self, service, db, group):
        uploaded = service.upload_file(1, 2, "a.txt", b"hello")
        service.delete_file(uploaded.id)
        assert uploaded.path not in _objects(db)

    def test_missing_file(self, service, group):
        with pytest.raises(HTTPException) as exc:
            service.get_signed_url(404)
        assert exc.value.status_code == 404


# ===================== API =====================


async def test_upload_list_download(client, db, group):
    r = await client.post(
        "/api/v1/files/group/1",
        files={"file": ("notes.txt", b"derivatives", "text/plain")},
        headers=bearer("bob"),
    )
    assert r.status_code == 201
    file_id = r.json()["id"]

    r = await client.get("/api/v1/files/group/1", headers=bearer("alice"))
    assert [(f["file_name"], f["uploader_name"]) for f in r.json()] == [("notes.txt", "Bob")]

    r = await client.get(f"/api/v1/files/{file_id}/download", headers=bearer("alice"))
    assert r.status_code == 200
    assert r.content == b"derivatives"
    assert "notes.txt" in r.headers["content-disposition"]


async def test_non_member_cannot_upload(client, db, group):
    r = await client.post(
        "/api/v1/files/group/1",
        files={"file": ("notes.txt", b"x", "text/plain")},
        headers=bearer("carol"),
    )
    assert r.status_code == 403


async def test_delete_permissions(client, db, group):
    db.seed("group_members", {"group_id": 1, "user_id": 3, "role": "member"})
    r = await client.post(
        "/api/v1/files/group/1",
        files={"file": ("notes.txt", b"x", "text/plain")},
        headers=bearer("bob"),
    )
    file_id = r.json()["id"]

    assert (await client.delete(f"/api/v1/files/{file_id}", headers=bearer("carol"))).status_code == 403
    assert (await client.delete(f"/api/v1/files/{file_id}", headers=bearer("alice"))).status_code == 204
    assert db.rows("files") == []
