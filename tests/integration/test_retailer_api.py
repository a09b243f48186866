"""Integration tests for the retailer directory endpoint."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

BASE_URL = "/api/v1/retailers/"


class TestRetailerAPI:
    def test_lists_approved_retailers_except_caller(
        self, authed_client, initiator, receiver, outsider, unapproved
    ):
        response = authed_client(initiator).get(BASE_URL)

        assert response.status_code == 200
        assert [r["shop_name"] for r in response.json()] == [
            "Bilal's Shop",
            "Chitra's Shop",
        ]
        assert response.json()[0]["user_id"] == receiver.id

    def test_search_by_display_name(self, authed_client, initiator, receiver, outsider):
        response = authed_client(initiator).get(BASE_URL, {"search": "iyer"})

        assert [r["display_name"] for r in response.json()] == ["Chitra Iyer"]

    def test_requires_authentication(self, api_client):
        assert api_client.get(BASE_URL).status_code == 401
