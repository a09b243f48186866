"""Integration tests for Auth0 JWT authentication.

Validates:
  - /health is public (AllowAny, plain Django view, no DRF).
  - Protected DRF endpoints return 401 without a token.
  - Protected DRF endpoints return 401 with an invalid token.
  - Protected DRF endpoints return 401 with a malformed Authorization header.
"""

import pytest

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    """Health check must remain accessible without credentials."""

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    def test_no_token_returns_401(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_empty_bearer_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer ")
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestCurrentRetailer:
    """/api/v1/me describes the caller as the exchange workflow sees them."""

    def test_local_jwt_round_trip(self, api_client, initiator):
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "asha", "password": "testpass123"},
            format="json",
        )
        assert token.status_code == 200

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.json()['access']}")
        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json() == {
            "message": "authenticated",
            "user_id": initiator.id,
            "display_name": "Asha Verma",
            "seller_status": "approved",
        }

    def test_pending_seller_status_is_reported(self, authed_client, unapproved):
        response = authed_client(unapproved).get("/api/v1/me")

        assert response.status_code == 200
        assert response.json()["seller_status"] == "pending"

    def test_user_without_registration(self, api_client, django_user_model):
        user = django_user_model.objects.create_user("walk-in", password="x-pass-123")
        api_client.force_authenticate(user=user)

        data = api_client.get("/api/v1/me").json()

        assert data["seller_status"] is None
        assert data["display_name"] == "walk-in"
