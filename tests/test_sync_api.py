"""Tests for POST /api/sync and POST /api/delete-permanent."""

from app.models import Folder, StoredFile
from tests.conftest import make_file, make_folder


class TestSyncEndpoint:

    def test_sync_reports_counts(self, client, db, store):
        make_file(db, "stale.txt")
        store.add("a/b/file1.txt", "a/")

        resp = client.post("/api/sync")

        assert resp.status_code == 200
        assert resp.json() == {
            "message": "Sync complete",
            "added": 1,
            "removed_files": 1,
            "removed_folders": 0,
        }

    def test_owner_is_caller(self, client, db, store):
        store.add("x.txt")
        client.post("/api/sync")
        assert db.query(StoredFile).one().owner_id == "anonymous"

    def test_listing_failure_returns_500(self, client, db, store):
        make_folder(db, "kept")
        store.fail_list = True

        resp = client.post("/api/sync")

        assert resp.status_code == 500
        assert resp.json()["error"] == "STORAGE_ERROR"
        assert db.query(Folder).count() == 1

    def test_requires_token_when_auth_enabled(self, client, enable_auth):
        assert client.post("/api/sync").status_code == 401

    def test_regular_user_may_sync(self, client, enable_auth, make_user, db, store):
        headers = make_user("alice", role="user")
        store.add("alice.txt")

        resp = client.post("/api/sync", headers=headers)

        assert resp.status_code == 200
        assert db.query(StoredFile).one().owner_id == "alice"


class TestDeletePermanentEndpoint:

    def test_purges_folder(self, client, db, store):
        folder = make_folder(db, "reports")
        store.add("reports/a.csv")

        resp = client.post("/api/delete-permanent", json={"id": folder.id, "type": "folder"})

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert store.objects == {}
        assert db.query(Folder).count() == 0

    def test_purges_file(self, client, db, store):
        record = make_file(db, "a.txt")
        store.add("a.txt")

        resp = client.post("/api/delete-permanent", json={"id": record.id, "type": "file"})

        assert resp.status_code == 200
        assert db.query(StoredFile).count() == 0

    def test_unknown_id_succeeds(self, client):
        resp = client.post("/api/delete-permanent", json={"id": "nope", "type": "file"})
        assert resp.status_code == 200

    def test_invalid_type_rejected(self, client):
        resp = client.post("/api/delete-permanent", json={"id": "x", "type": "bucket"})
        assert resp.status_code == 422

    def test_storage_failure_returns_500_and_keeps_row(self, client, db, store):
        record = make_file(db, "stuck.txt")
        store.add("stuck.txt")
        store.fail_delete_keys.add("stuck.txt")

        resp = client.post("/api/delete-permanent", json={"id": record.id, "type": "file"})

        assert resp.status_code == 500
        assert db.query(StoredFile).count() == 1

    def test_unauthenticated_rejected(self, client, enable_auth):
        resp = client.post("/api/delete-permanent", json={"id": "x", "type": "file"})
        assert resp.status_code == 401

    def test_non_admin_forbidden(self, client, enable_auth, make_user, db, store):
        headers = make_user("bob", role="user")
        record = make_file(db, "keep.txt")
        store.add("keep.txt")

        resp = client.post(
            "/api/delete-permanent", json={"id": record.id, "type": "file"}, headers=headers
        )

        assert resp.status_code == 403
        assert "keep.txt" in store.objects
        assert db.query(StoredFile).count() == 1

    def test_admin_allowed(self, client, enable_auth, auth_headers, db, store):
        record = make_file(db, "gone.txt")
        resp = client.post(
            "/api/delete-permanent", json={"id": record.id, "type": "file"}, headers=auth_headers
        )
        assert resp.status_code == 200
