"""Tests for the root and /health status routes."""

import pytest

from app import create_app


@pytest.fixture
def client():
    """Create test client for Flask app."""
    app = create_app()
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def health(client):
    response = client.get("/health")
    assert response.status_code == 200
    return response.get_json()


class TestRootEndpoint:
    """Tests for GET /."""

    def test_running(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.content_type == "application/json"
        assert response.get_json() == {"message": "Swing Metrics API", "status": "running"}


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_healthy(self, health):
        assert health["status"] == "healthy"
        assert health["service"] == "Swing Phase Detection and Metrics API"

    def test_lists_supported_sports(self, health):
        assert health["sports"] == ["golf", "tennis", "pickleball", "baseball", "softball"]

    def test_supabase_configured(self, client, monkeypatch):
        """Both credentials must be present."""
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
        assert client.get("/health").get_json()["supabase_configured"] is True

        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY")
        assert client.get("/health").get_json()["supabase_configured"] is False

    def test_supabase_not_configured(self, client, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        assert client.get("/health").get_json()["supabase_configured"] is False

    def test_no_auth_required(self, client, monkeypatch):
        monkeypatch.setenv("FLASK_SECRET_KEY", "test-secret")
        assert client.get("/health").status_code == 200
