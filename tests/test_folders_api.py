"""Tests for folder create, browse, trash and restore endpoints."""

from app.models import Folder
from tests.conftest import make_file, make_folder


class TestCreateFolder:

    def test_create_root_folder_writes_marker(self, client, store):
        resp = client.post("/api/folders", json={"name": "Docs"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["storage_key"] == "Docs/"
        assert data["folder"]["name"] == "Docs"
        assert data["folder"]["parent_id"] is None
        assert "Docs/" in store.objects

    def test_create_nested_folder(self, client, store):
        parent_id = client.post("/api/folders", json={"name": "a"}).json()["folder"]["id"]
        resp = client.post("/api/folders", json={"name": "b", "parent_id": parent_id})
        assert resp.status_code == 201
        assert resp.json()["storage_key"] == "a/b/"
        assert "a/b/" in store.objects

    def test_duplicate_folder_returns_409(self, client):
        client.post("/api/folders", json={"name": "dup"})
        resp = client.post("/api/folders", json={"name": "dup"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "FOLDER_CONFLICT"

    def test_missing_parent_returns_404(self, client):
        resp = client.post("/api/folders", json={"name": "x", "parent_id": "missing"})
        assert resp.status_code == 404

    def test_slash_in_name_rejected(self, client):
        resp = client.post("/api/folders", json={"name": "a/b"})
        assert resp.status_code == 422

    def test_marker_failure_rolls_back_row(self, client, db, store):
        store.fail_put = True
        resp = client.post("/api/folders", json={"name": "Docs"})
        assert resp.status_code == 500
        assert db.query(Folder).count() == 0

    def test_created_folder_survives_sync(self, client, db):
        client.post("/api/folders", json={"name": "Empty"})
        resp = client.post("/api/sync")
        assert resp.json()["removed_folders"] == 0
        assert db.query(Folder).count() == 1


class TestFolderContents:

    def test_root_contents(self, client, db):
        docs = make_folder(db, "Docs")
        make_folder(db, "Binned", deleted=True)
        make_file(db, "top.txt")
        make_file(db, "Docs/inner.txt", folder_id=docs.id)

        resp = client.get("/api/folders/contents")

        assert resp.status_code == 200
        data = resp.json()
        assert data["folder"] is None
        assert data["path"] == ""
        assert [f["name"] for f in data["folders"]] == ["Docs"]
        assert [f["name"] for f in data["files"]] == ["top.txt"]

    def test_folder_contents(self, client, db):
        docs = make_folder(db, "Docs")
        make_folder(db, "Sub", parent_id=docs.id)
        make_file(db, "Docs/inner.txt", folder_id=docs.id)

        data = client.get("/api/folders/contents", params={"folder_id": docs.id}).json()

        assert data["path"] == "Docs/"
        assert data["folder"]["id"] == docs.id
        assert [f["name"] for f in data["folders"]] == ["Sub"]
        assert [f["name"] for f in data["files"]] == ["inner.txt"]

    def test_unknown_folder_404(self, client):
        assert client.get("/api/folders/contents", params={"folder_id": "nope"}).status_code == 404


class TestTrashAndRestore:

    def test_trash_then_restore(self, client, db, store):
        folder_id = client.post("/api/folders", json={"name": "Docs"}).json()["folder"]["id"]

        assert client.delete(f"/api/folders/{folder_id}").status_code == 204
        assert client.get("/api/folders/contents").json()["folders"] == []
        assert "Docs/" in store.objects

        assert client.post(f"/api/folders/{folder_id}/restore").status_code == 204
        names = [f["name"] for f in client.get("/api/folders/contents").json()["folders"]]
        assert names == ["Docs"]

    def test_trash_unknown_folder_404(self, client):
        assert client.delete("/api/folders/nope").status_code == 404

    def test_restore_conflict_returns_409(self, client, db):
        old = make_folder(db, "Docs", deleted=True)
        make_folder(db, "Docs")

        resp = client.post(f"/api/folders/{old.id}/restore")

        assert resp.status_code == 409
