"""Tests for /health and / endpoints."""

from tests.conftest import make_file


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] in ("healthy", "degraded")
        assert "db" in data
        assert "uptime_seconds" in data
        assert "version" in data
        assert "file_count" in data

    def test_file_count_excludes_trash(self, client, db):
        make_file(db, "a.txt")
        binned = make_file(db, "b.txt")
        client.delete(f"/api/files/{binned.id}")
        assert client.get("/health").json()["file_count"] == 1

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "FileVault API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["x-request-id"] == "abc-123"
