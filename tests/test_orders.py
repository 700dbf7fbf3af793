"""Тесты заказов (orders endpoints)."""

from __future__ import annotations

import uuid
from pathlib import Path

import pytest

from kabobfood.api.deps import get_notifier
from kabobfood.models import Product, Region
from tests.helpers import (
    FailingNotifier,
    admin_headers,
    count_orders,
    make_address,
    make_catalog,
    make_client,
    make_user,
    order_payload,
    seed,
    user_headers,
)


def test_create_order_unauthorized(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)

    response = client.post("/orders", json=order_payload(region, product))
    assert response.status_code == 401


def test_delivery_order_priced_from_catalog(tmp_path: Path) -> None:
    client, sessions, notifier, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)
    address = make_address(sessions, user, region)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(
            region,
            product,
            type="delivery",
            address_id=address.id,
            items=[{"product_id": product.id, "qty": 2}],
        ),
    )

    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "new"
    assert order["type"] == "delivery"
    assert order["items_total"] == 25.0
    assert order["delivery_price"] == 5.0
    assert order["total_price"] == 30.0
    assert order["address_id"] == address.id
    assert order["items"] == [
        {
            "id": order["items"][0]["id"],
            "order_id": order["id"],
            "product_id": product.id,
            "product_name": "Lula kebab",
            "qty": 2,
            "price": 12.5,
            "total": 25.0,
        },
    ]
    assert notifier.created == [(order["id"], user.telegram_id)]


def test_pickup_order_has_no_delivery_fee(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, type="PICKUP"),
    )

    assert response.status_code == 201
    order = response.json()
    assert order["type"] == "pickup"
    assert order["delivery_price"] == 0.0
    assert order["total_price"] == 12.5
    assert order["address_id"] is None


def test_client_prices_are_ignored_and_duplicates_merged(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    drink = seed(
        sessions,
        Product(category_id=product.category_id, name="Ayran", price=3.0, is_active=True),
    )
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(
            region,
            product,
            items=[
                {"product_id": product.id, "qty": 1, "price": 0.01},
                {"product_id": drink.id, "qty": 2},
                {"product_id": product.id, "qty": 2},
            ],
        ),
    )

    assert response.status_code == 201
    items = response.json()["items"]
    assert [(i["product_id"], i["qty"], i["total"]) for i in items] == [
        (product.id, 3, 37.5),
        (drink.id, 2, 6.0),
    ]
    assert response.json()["items_total"] == 43.5


def test_replay_returns_same_order(tmp_path: Path) -> None:
    client, sessions, notifier, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)
    payload = order_payload(region, product)

    first = client.post("/orders", headers=user_headers(user), json=payload)
    second = client.post("/orders", headers=user_headers(user), json=payload)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["items"] == first.json()["items"]
    assert count_orders(sessions) == 1
    assert len(notifier.created) == 1


def test_foreign_client_request_id_is_not_returned(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    owner = make_user(sessions, telegram_id=1)
    stranger = make_user(sessions, telegram_id=2)
    payload = order_payload(region, product)

    assert client.post("/orders", headers=user_headers(owner), json=payload).status_code == 201
    response = client.post("/orders", headers=user_headers(stranger), json=payload)

    assert response.status_code == 500
    assert response.json()["code"] == "order_persistence_failed"
    assert count_orders(sessions) == 1


def test_inactive_product_rejects_whole_order(tmp_path: Path) -> None:
    client, sessions, notifier, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    hidden = seed(
        sessions,
        Product(category_id=product.category_id, name="Old", price=1.0, is_active=False),
    )
    user = make_user(sessions)

    for product_id in (hidden.id, 9999):
        response = client.post(
            "/orders",
            headers=user_headers(user),
            json=order_payload(
                region,
                product,
                items=[{"product_id": product.id, "qty": 1}, {"product_id": product_id, "qty": 1}],
            ),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "product_not_found"

    assert count_orders(sessions) == 0
    assert notifier.created == []


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"client_request_id": "not-a-uuid"}, "invalid_client_request_id"),
        ({"items": []}, "empty_items"),
        ({"items": [{"product_id": 1, "qty": 0}]}, "invalid_quantity"),
        ({"type": "drone"}, "invalid_order_type"),
        ({"payment_method": "  "}, "missing_payment_method"),
        ({"type": "delivery"}, "address_required"),
        ({"region_id": 9999}, "invalid_region"),
    ],
)
def test_order_validation_codes(tmp_path: Path, overrides: dict, code: str) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, **overrides),
    )

    assert response.status_code == 400
    assert response.json()["code"] == code
    assert count_orders(sessions) == 0


def test_inactive_region_rejected(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    _, product = make_catalog(sessions)
    closed = seed(sessions, Region(name="Closed", delivery_price=1.0, is_active=False))
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(closed, product),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_region"


def test_foreign_address_rejected(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions, telegram_id=1)
    other = make_user(sessions, telegram_id=2)
    address = make_address(sessions, other, region)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, type="delivery", address_id=address.id),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_address"


def test_list_and_get_own_orders(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions, telegram_id=1)
    other = make_user(sessions, telegram_id=2)

    first = client.post("/orders", headers=user_headers(user), json=order_payload(region, product))
    second = client.post("/orders", headers=user_headers(user), json=order_payload(region, product))
    foreign = client.post(
        "/orders",
        headers=user_headers(other),
        json=order_payload(region, product),
    )

    response = client.get("/orders", headers=user_headers(user))
    assert response.status_code == 200
    ids = [o["id"] for o in response.json()["orders"]]
    assert ids == [second.json()["id"], first.json()["id"]]
    assert all(o["items"] for o in response.json()["orders"])

    response = client.get(f"/orders/{first.json()['id']}", headers=user_headers(user))
    assert response.status_code == 200
    assert response.json()["client_request_id"] == first.json()["client_request_id"]

    response = client.get(f"/orders/{foreign.json()['id']}", headers=user_headers(user))
    assert response.status_code == 404
    assert response.json()["code"] == "order_not_found"


def test_admin_token_cannot_place_orders(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)

    response = client.post("/orders", headers=admin_headers(), json=order_payload(region, product))

    assert response.status_code == 403


def test_deleted_product_keeps_order_snapshot(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)
    order = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product),
    ).json()

    deleted = client.delete(f"/admin/products/{product.id}", headers=admin_headers())
    assert deleted.status_code == 204

    response = client.get(f"/orders/{order['id']}", headers=user_headers(user))
    item = response.json()["items"][0]
    assert item["product_id"] is None
    assert item["product_name"] == "Lula kebab"
    assert item["price"] == 12.5


def test_order_payload_fields_are_trimmed(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(
            region,
            product,
            client_request_id=str(uuid.uuid4()),
            payment_method=" card ",
            customer_name=" Ali ",
        ),
    )

    assert response.status_code == 201
    assert response.json()["payment_method"] == "card"
    assert response.json()["customer_name"] == "Ali"



def test_order_survives_notifier_failure(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    client.app.dependency_overrides[get_notifier] = FailingNotifier
    region, product = make_catalog(sessions)
    user = make_user(sessions)

    response = client.post("/orders", headers=user_headers(user), json=order_payload(region, product))

    assert response.status_code == 201
    assert response.json()["status"] == "new"
    assert count_orders(sessions) == 1


def test_client_request_id_stored_in_canonical_form(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)
    key = uuid.uuid4()

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, client_request_id=f"urn:uuid:{str(key).upper()}"),
    )
    assert response.status_code == 201
    assert response.json()["client_request_id"] == str(key)

    replay = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, client_request_id=key.hex),
    )
    assert replay.status_code == 200
    assert replay.json()["id"] == response.json()["id"]
    assert count_orders(sessions) == 1


@pytest.mark.parametrize(
    "fields",
    [
        {"payment_method": "x" * 65},
        {"customer_name": "x" * 256},
        {"customer_phone": "7" * 33},
        {"comment": "x" * 2001},
        {"client_request_id": "x" * 65},
    ],
)
def test_overlong_fields_rejected(tmp_path: Path, fields: dict) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    user = make_user(sessions)

    response = client.post(
        "/orders",
        headers=user_headers(user),
        json=order_payload(region, product, **fields),
    )

    assert response.status_code == 422
    assert count_orders(sessions) == 0
