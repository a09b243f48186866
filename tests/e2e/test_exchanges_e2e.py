"""E2E tests of the exchange workflow using Playwright."""

from __future__ import annotations

import json

import pytest

pytestmark = [pytest.mark.e2e]


def _item(product_id: str, quantity: int, unit_price: str) -> dict:
    return {
        "product_id": product_id,
        "product_name": f"E2E {product_id}",
        "quantity": quantity,
        "unit_price": unit_price,
    }


def _post(api_request_context, url, retailer, payload):
    return api_request_context.post(
        url, data=json.dumps(payload), headers=retailer.headers
    )


def test_barter_from_proposal_to_completion(api_request_context, make_retailer):
    initiator = make_retailer()
    receiver = make_retailer()

    created = _post(
        api_request_context,
        "/api/v1/exchanges/",
        initiator,
        {
            "receiver_id": receiver.user_id,
            "initiator_address_id": initiator.address_id,
            "initiator_items": [_item("saree-1", 2, "450.00")],
            "receiver_items": [_item("lamp-7", 1, "900.00")],
        },
    )
    assert created.status == 201
    exchange = created.json()
    assert exchange["price_difference"] == "0.00"
    assert exchange["payment_status"] == "paid"
    base = f"/api/v1/exchanges/{exchange['id']}"

    approved = _post(
        api_request_context,
        f"{base}/approve/",
        receiver,
        {"receiver_address_id": receiver.address_id},
    )
    assert approved.status == 200
    assert approved.json()["status"] == "approved"

    for retailer in (initiator, receiver):
        shipped = _post(
            api_request_context,
            f"{base}/delivery/",
            retailer,
            {"delivery_status": "shipped"},
        )
        assert shipped.status == 200
    for retailer in (initiator, receiver):
        delivered = _post(
            api_request_context,
            f"{base}/delivery/",
            retailer,
            {"delivery_status": "delivered"},
        )
        assert delivered.status == 200

    final = api_request_context.get(f"{base}/", headers=initiator.headers)
    assert final.status == 200
    data = final.json()
    assert data["status"] == "completed"
    assert data["timeline"][0]["actor_name"] == "System"


def test_outsider_cannot_read_exchange(api_request_context, make_retailer):
    initiator = make_retailer()
    receiver = make_retailer()
    outsider = make_retailer()

    created = _post(
        api_request_context,
        "/api/v1/exchanges/",
        initiator,
        {
            "receiver_id": receiver.user_id,
            "initiator_address_id": initiator.address_id,
            "initiator_items": [_item("a", 1, "10.00")],
            "receiver_items": [_item("b", 1, "12.00")],
        },
    )
    assert created.status == 201

    response = api_request_context.get(
        f"/api/v1/exchanges/{created.json()['id']}/", headers=outsider.headers
    )
    assert response.status == 403
