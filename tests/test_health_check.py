"""Health endpoint: dependency probes and outbox backlog."""

from unittest.mock import patch


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_cache_failure_returns_503(self, client):
        with patch("modules.core.views.cache.set", side_effect=ConnectionError):
            response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"

    def test_health_is_public(self, api_client):
        assert api_client.get("/health").status_code == 200

    def test_database_failure_returns_503_without_outbox(self, client):
        with patch("modules.core.views.connections") as conns:
            conns.__getitem__.side_effect = ConnectionError("db down")
            response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["services"]["database"] == {"status": "down"}
        assert "outbox" not in data

    def test_reports_unpublished_outbox_events(self, client, pending_exchange):
        data = client.get("/health").json()
        assert data["outbox"] == {"pending": 1, "failed": 0}

    def test_empty_outbox(self, client):
        assert client.get("/health").json()["outbox"] == {"pending": 0, "failed": 0}
