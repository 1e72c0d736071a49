"""Tests for upload, registration, download and file trash endpoints."""

from app.models import Folder, StoredFile
from tests.conftest import make_file, make_folder


class TestUploadUrl:

    def test_returns_key_in_folder(self, client):
        resp = client.post(
            "/api/files/upload-url",
            json={"filename": "report.pdf", "content_type": "application/pdf", "folder_path": "/docs//2024"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["key"] == "docs/2024/report.pdf"
        assert "op=put" in data["url"]

    def test_root_upload(self, client):
        resp = client.post("/api/files/upload-url", json={"filename": "a.txt"})
        assert resp.json()["key"] == "a.txt"

    def test_dot_segments_rejected(self, client):
        resp = client.post("/api/files/upload-url", json={"filename": "a.txt", "folder_path": "../etc"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"


class TestRegister:

    def test_register_creates_folder_chain(self, client, db):
        resp = client.post(
            "/api/files",
            json={"storage_key": "docs/2024/report.pdf", "size": 2048, "content_type": "application/pdf"},
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "report.pdf"
        assert data["size"] == 2048
        assert data["owner_id"] == "anonymous"
        folder = db.get(Folder, data["folder_id"])
        assert folder.name == "2024"
        assert db.query(Folder).count() == 2

    def test_reregister_updates_in_place(self, client, db):
        first = client.post("/api/files", json={"storage_key": "a.txt", "size": 1}).json()
        second = client.post("/api/files", json={"storage_key": "a.txt", "size": 5}).json()

        assert second["id"] == first["id"]
        assert second["size"] == 5
        assert db.query(StoredFile).count() == 1

    def test_marker_key_rejected(self, client):
        resp = client.post("/api/files", json={"storage_key": "docs/"})
        assert resp.status_code == 400

    def test_negative_size_rejected(self, client):
        resp = client.post("/api/files", json={"storage_key": "a.txt", "size": -1})
        assert resp.status_code == 422


class TestDownload:

    def test_attachment_url(self, client, db):
        record = make_file(db, "docs/a.pdf")
        resp = client.get(f"/api/files/{record.id}/download")
        assert resp.status_code == 200
        assert "disposition=attachment" in resp.json()["url"]

    def test_inline_url(self, client, db):
        record = make_file(db, "docs/a.pdf")
        resp = client.get(f"/api/files/{record.id}/download", params={"inline": "true"})
        assert "disposition=inline" in resp.json()["url"]

    def test_trashed_file_not_downloadable(self, client, db):
        record = make_file(db, "a.txt")
        client.delete(f"/api/files/{record.id}")
        assert client.get(f"/api/files/{record.id}/download").status_code == 404


class TestFileTrash:

    def test_trash_and_restore(self, client, db):
        folder = make_folder(db, "docs")
        record = make_file(db, "docs/a.txt", folder_id=folder.id)
        params = {"folder_id": folder.id}

        assert client.delete(f"/api/files/{record.id}").status_code == 204
        assert client.get("/api/folders/contents", params=params).json()["files"] == []

        assert client.post(f"/api/files/{record.id}/restore").status_code == 204
        files = client.get("/api/folders/contents", params=params).json()["files"]
        assert [f["id"] for f in files] == [record.id]

    def test_restore_conflict_returns_409(self, client, db):
        old = make_file(db, "a.txt")
        client.delete(f"/api/files/{old.id}")
        client.post("/api/files", json={"storage_key": "a.txt"})

        resp = client.post(f"/api/files/{old.id}/restore")

        assert resp.status_code == 409
        assert resp.json()["error"] == "FILE_CONFLICT"

    def test_restore_unknown_file_404(self, client):
        assert client.post("/api/files/nope/restore").status_code == 404
