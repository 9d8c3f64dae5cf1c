"""Tests for order placement, atomicity and owner-scoped order management."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import Session

from shopfront.backend.enum import OrderStatus
from shopfront.backend.model import Order, OrderItem, Product
from shopfront.backend.service import order_service


@pytest.fixture()
def alice(make_user):
    return make_user()


@pytest.fixture()
def bob(make_user):
    return make_user(username="bob", email="bob@example.com")


@pytest.fixture()
def place_order(client):
    def _place(account, items, **fields):
        return client.post("/api/orders", json={"items": items, **fields}, headers=account.headers)

    return _place


def test_create_order_computes_total_and_snapshots_prices(alice, add_product, place_order):
    phone = add_product("Phone", "999.00")
    case = add_product("Case", "19.99")

    response = place_order(
        alice,
        [{"product_id": phone, "quantity": 1}, {"product_id": case, "quantity": 3}],
        delivery_address="1 Main St",
        phone="+1 555 123 4567",
        notes="Leave at the door",
    )

    assert response.status_code == 201
    order = response.json()["data"]
    assert order["status"] == "pending"
    assert order["user_id"] == alice.id
    assert Decimal(str(order["total_amount"])) == Decimal("1058.97")
    assert order["delivery_address"] == "1 Main St"
    prices = {item["product_id"]: Decimal(str(item["price"])) for item in order["items"]}
    assert prices == {phone: Decimal("999.00"), case: Decimal("19.99")}


def test_later_price_change_does_not_alter_order(client, alice, add_product, place_order, db):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 2}]).json()["data"]["id"]

    with Session(db) as session:
        product = session.get(Product, product_id)
        product.price = Decimal("15.00")
        session.add(product)
        session.commit()

    order = client.get(f"/api/orders/{order_id}", headers=alice.headers).json()["data"]
    items = client.get(f"/api/orders/{order_id}/items", headers=alice.headers).json()["data"]

    assert Decimal(str(order["total_amount"])) == Decimal("20.00")
    assert Decimal(str(items[0]["price"])) == Decimal("10.00")
    assert items[0]["product_name"] == "Widget"


def test_unknown_product_aborts_whole_order(alice, add_product, place_order, count_rows):
    product_id = add_product("Widget", "10.00")

    response = place_order(alice, [{"product_id": product_id, "quantity": 1}, {"product_id": 9999, "quantity": 1}])

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_out_of_stock_product_aborts_whole_order(alice, add_product, place_order, count_rows):
    available = add_product("Widget", "10.00")
    sold_out = add_product("Gadget", "5.00", in_stock=False)

    response = place_order(alice, [{"product_id": available, "quantity": 1}, {"product_id": sold_out, "quantity": 1}])

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PRODUCT_OUT_OF_STOCK"
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


@pytest.mark.parametrize(
    "failure, code",
    [
        (OperationalError("INSERT INTO order_items", {}, Exception("disk I/O error")), "ORDER_PERSISTENCE_FAILED"),
        (TimeoutError(), "TRANSACTION_TIMEOUT"),
    ],
)
def test_failure_mid_batch_rolls_back_everything(
    alice, add_product, place_order, count_rows, monkeypatch, failure, code
):
    first = add_product("Widget", "10.00")
    second = add_product("Gadget", "5.00")
    created = []

    def failing_order_item(**fields):
        if created:
            raise failure
        item = OrderItem(**fields)
        created.append(item)
        return item

    monkeypatch.setattr(order_service, "OrderItem", failing_order_item)

    response = place_order(alice, [{"product_id": first, "quantity": 1}, {"product_id": second, "quantity": 1}])

    assert response.status_code == 500
    assert response.json()["error"]["code"] == code
    assert len(created) == 1
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_slow_transaction_times_out_and_rolls_back(app, alice, add_product, place_order, count_rows, monkeypatch):
    product_id = add_product("Widget", "10.00")
    monkeypatch.setattr(app.state.order_service, "transaction_timeout", 0.05)
    original_flush = AsyncSession.flush

    async def slow_flush(self, objects=None):
        await asyncio.sleep(1)
        return await original_flush(self, objects)

    monkeypatch.setattr(AsyncSession, "flush", slow_flush)

    response = place_order(alice, [{"product_id": product_id, "quantity": 1}])

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "TRANSACTION_TIMEOUT"
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0


def test_concurrent_orders_for_same_product_both_succeed(alice, bob, add_product, place_order, count_rows):
    """Availability is a flag, nothing is reserved or decremented."""
    product_id = add_product("Widget", "10.00")

    first = place_order(alice, [{"product_id": product_id, "quantity": 5}])
    second = place_order(bob, [{"product_id": product_id, "quantity": 5}])

    assert first.status_code == second.status_code == 201
    assert count_rows(Order) == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"items": []},
        {"items": [{"product_id": 1, "quantity": 0}]},
        {"items": [{"product_id": 1}]},
        {"items": [{"product_id": 1, "quantity": 1}], "phone": "abc"},
    ],
)
def test_create_order_validation(client, alice, payload):
    response = client.post("/api/orders", json=payload, headers=alice.headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_orders_are_owner_scoped(client, alice, bob, add_product, place_order):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]

    assert len(client.get("/api/orders", headers=alice.headers).json()["data"]) == 1
    assert client.get("/api/orders", headers=bob.headers).json()["data"] == []

    for response in (
        client.get(f"/api/orders/{order_id}", headers=bob.headers),
        client.get(f"/api/orders/{order_id}/items", headers=bob.headers),
        client.patch(f"/api/orders/{order_id}", json={"notes": "mine"}, headers=bob.headers),
        client.delete(f"/api/orders/{order_id}", headers=bob.headers),
    ):
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ORDER_NOT_FOUND"


def test_get_order_carries_verification_status(client, alice, add_product, place_order):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]

    body = client.get(f"/api/orders/{order_id}", headers=alice.headers).json()

    assert body["data"]["id"] == order_id
    assert body["email_verification_status"]["verified"] is True


def test_update_order_applies_only_sent_fields(client, alice, add_product, place_order):
    product_id = add_product("Widget", "10.00")
    order = place_order(alice, [{"product_id": product_id, "quantity": 1}], notes="ring twice").json()["data"]

    response = client.patch(
        f"/api/orders/{order['id']}",
        json={"delivery_address": "2 Side St"},
        headers=alice.headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["delivery_address"] == "2 Side St"
    assert updated["notes"] == "ring twice"
    assert updated["total_amount"] == order["total_amount"]
    assert updated["updated_at"] >= order["updated_at"]


def test_update_order_rejects_empty_and_unknown_fields(client, alice, add_product, place_order):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]

    empty = client.patch(f"/api/orders/{order_id}", json={}, headers=alice.headers)
    unknown = client.patch(f"/api/orders/{order_id}", json={"total_amount": "1.00"}, headers=alice.headers)

    assert empty.status_code == 400
    assert empty.json()["error"]["code"] == "EMPTY_PATCH"
    assert unknown.status_code == 400
    assert unknown.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
def test_terminal_orders_cannot_be_updated(client, alice, add_product, place_order, set_order_status, status):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]
    set_order_status(order_id, status)

    response = client.patch(f"/api/orders/{order_id}", json={"notes": "too late"}, headers=alice.headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "ORDER_NOT_MUTABLE"


def test_cancelling_makes_order_terminal(client, alice, add_product, place_order):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]

    cancel = client.patch(f"/api/orders/{order_id}", json={"status": "cancelled"}, headers=alice.headers)
    again = client.patch(f"/api/orders/{order_id}", json={"status": "pending"}, headers=alice.headers)

    assert cancel.status_code == 200
    assert cancel.json()["data"]["status"] == "cancelled"
    assert again.status_code == 400


def test_delete_pending_order_removes_items(client, alice, add_product, place_order, count_rows):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 2}]).json()["data"]["id"]

    response = client.delete(f"/api/orders/{order_id}", headers=alice.headers)

    assert response.status_code == 200
    assert count_rows(Order) == 0
    assert count_rows(OrderItem) == 0
    assert client.get(f"/api/orders/{order_id}", headers=alice.headers).status_code == 404


@pytest.mark.parametrize("status", [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED])
def test_only_pending_orders_can_be_deleted(client, alice, add_product, place_order, set_order_status, count_rows, status):
    product_id = add_product("Widget", "10.00")
    order_id = place_order(alice, [{"product_id": product_id, "quantity": 1}]).json()["data"]["id"]
    set_order_status(order_id, status)

    response = client.delete(f"/api/orders/{order_id}", headers=alice.headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "ORDER_NOT_DELETABLE"
    assert count_rows(Order) == 1
