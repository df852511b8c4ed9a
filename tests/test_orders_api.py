from sqlmodel import select

from app.models.notifications import Notification
from app.models.order import Order
from app.models.product import Product
from app.notifications.channels import Channel, enabled_channels


def order_payload(product, qty=2, **overrides):
    payload = {
        "order_items": [{"product_id": product.id, "qty": qty, "size": "L", "color": "Black"}],
        "shipping_address": {
            "address": "12 Marina Road",
            "city": "Lagos",
            "state": "Lagos",
            "postal_code": "101001",
        },
        "payment_method": "paystack-card",
    }
    payload.update(overrides)
    return payload


def test_create_order_prices_from_catalogue(client, session, user_headers, tee):
    response = client.post("/orders", json=order_payload(tee), headers=user_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["items_price"] == 20000
    assert data["shipping_price"] == 1000
    assert data["tax_price"] == 1500
    assert data["total_price"] == 22500
    assert data["status"] == "Pending"
    assert data["is_paid"] is False
    assert data["order_items"][0]["name"] == "Classic Tee"

    session.refresh(tee)
    assert tee.count_in_stock == 18


def test_create_order_with_promo(client, user_headers, tee):
    response = client.post(
        "/orders",
        json=order_payload(tee, qty=1, promo_code="welcome20"),
        headers=user_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["discount"] == 2000
    assert data["promo_code"] == "WELCOME20"
    assert data["total_price"] == 9750


def test_create_order_with_invalid_promo(client, session, user_headers, tee):
    response = client.post(
        "/orders",
        json=order_payload(tee, promo_code="BOGUS"),
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "PROMO_CODE_ERROR"
    assert session.exec(select(Order)).first() is None


def test_create_order_insufficient_stock(client, user_headers, tee):
    response = client.post("/orders", json=order_payload(tee, qty=21), headers=user_headers)

    assert response.status_code == 400


def test_create_order_unknown_product(client, user_headers, tee):
    payload = order_payload(tee)
    payload["order_items"][0]["product_id"] = 9999

    assert client.post("/orders", json=payload, headers=user_headers).status_code == 404


def test_create_order_requires_auth(client, tee):
    assert client.post("/orders", json=order_payload(tee)).status_code == 401


def test_create_order_notifies_admin_inbox(client, session, user_headers, tee):
    client.post("/orders", json=order_payload(tee), headers=user_headers)

    notification = session.exec(select(Notification)).first()
    assert notification.trigger_source == "order_placed"


def test_get_order_ownership(client, user, other_user, headers_for, admin_headers, make_order):
    order = make_order(user)

    assert client.get(f"/orders/{order.id}", headers=headers_for(user)).status_code == 200
    assert client.get(f"/orders/{order.id}", headers=headers_for(other_user)).status_code == 403
    assert client.get(f"/orders/{order.id}", headers=admin_headers).status_code == 200
    assert client.get("/orders/9999", headers=headers_for(user)).status_code == 404


def test_cancel_pending_order_restocks(client, session, user, user_headers, make_order, tee):
    order = make_order(user, product=tee)

    response = client.put(f"/orders/{order.id}/cancel", json={"reason": "Wrong size"}, headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "Cancelled"
    assert data["cancellation_reason"] == "Wrong size"
    assert data["cancelled_at"] is not None

    session.refresh(tee)
    assert tee.count_in_stock == 22


def test_cancel_requires_reason(client, user, user_headers, make_order):
    order = make_order(user)

    response = client.put(f"/orders/{order.id}/cancel", json={"reason": "  "}, headers=user_headers)

    assert response.status_code == 409


def test_cancel_shipped_order_rejected(client, user, user_headers, make_order):
    order = make_order(user, status="Shipped", is_paid=True)

    response = client.put(f"/orders/{order.id}/cancel", json={"reason": "Too slow"}, headers=user_headers)

    assert response.status_code == 409
    assert response.json()["message"] == "Order cannot be cancelled at this stage"


def test_admin_lifecycle(client, session, user, user_headers, admin_headers, make_order):
    order = make_order(user, status="Processing", is_paid=True)

    shipped = client.put(
        f"/orders/{order.id}/status",
        json={"status": "Shipped", "tracking_number": "GIG-123"},
        headers=admin_headers,
    )
    assert shipped.status_code == 200
    assert shipped.json()["tracking_number"] == "GIG-123"

    delivered = client.put(f"/orders/{order.id}/status", json={"status": "Delivered"}, headers=admin_headers)
    assert delivered.status_code == 200
    assert delivered.json()["is_delivered"] is True
    assert delivered.json()["delivered_at"] is not None

    confirmed = client.put(f"/orders/{order.id}/confirm-delivery", headers=user_headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["delivery_confirmed_at"] is not None

    again = client.put(f"/orders/{order.id}/confirm-delivery", headers=user_headers)
    assert again.json()["delivery_confirmed_at"] == confirmed.json()["delivery_confirmed_at"]

    events = client.get(f"/orders/{order.id}/events", headers=user_headers).json()
    assert [e["event_type"] for e in events] == ["ship", "deliver", "confirm_delivery"]
    assert (events[0]["from_status"], events[0]["to_status"]) == ("Processing", "Shipped")
    assert events[1]["to_status"] == "Delivered"


def test_admin_cannot_ship_unpaid_order(client, user, admin_headers, make_order):
    order = make_order(user)

    response = client.put(f"/orders/{order.id}/status", json={"status": "Shipped"}, headers=admin_headers)

    assert response.status_code == 409


def test_admin_cannot_set_arbitrary_status(client, user, admin_headers, make_order):
    order = make_order(user)

    for status in ("Processing", "Pending", "Refunded"):
        response = client.put(f"/orders/{order.id}/status", json={"status": status}, headers=admin_headers)
        assert response.status_code == 409


def test_status_update_requires_admin(client, user, user_headers, make_order):
    order = make_order(user, status="Processing", is_paid=True)

    response = client.put(f"/orders/{order.id}/status", json={"status": "Shipped"}, headers=user_headers)

    assert response.status_code == 403


def test_confirm_delivery_before_delivery(client, user, user_headers, make_order):
    order = make_order(user, status="Shipped", is_paid=True)

    assert client.put(f"/orders/{order.id}/confirm-delivery", headers=user_headers).status_code == 409


def test_my_orders_pagination(client, user, other_user, user_headers, make_order):
    for _ in range(3):
        make_order(user)
    make_order(other_user)

    data = client.get("/orders/myorders?page=1&limit=2", headers=user_headers).json()

    assert data["total_items"] == 3
    assert data["total_pages"] == 2
    assert len(data["results"]) == 2


def test_admin_order_filters(client, user, other_user, admin_headers, user_headers, make_order):
    make_order(user, status="Processing", is_paid=True)
    make_order(user)
    make_order(other_user)

    paid = client.get("/orders?is_paid=true", headers=admin_headers).json()
    assert paid["total_items"] == 1

    mine = client.get(f"/orders?user_id={user.id}", headers=admin_headers).json()
    assert mine["total_items"] == 2

    assert client.get("/orders", headers=user_headers).status_code == 403


def test_order_stats(client, user, admin_headers, make_order):
    make_order(user, status="Processing", is_paid=True)
    make_order(user)

    stats = client.get("/orders/stats", headers=admin_headers).json()

    assert stats["total_orders"] == 2
    assert stats["total_sales"] == 22500
    assert {row["status"] for row in stats["orders_by_status"]} == {"Pending", "Processing"}
    assert sum(day["orders"] for day in stats["sales_last_week"]) == 1


def test_calculate_total_endpoint(client):
    response = client.post(
        "/orders/calculate-total",
        json={"items": [{"price": 10000, "qty": 2}], "shipping_location": "Lagos"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_price"] == 22500
    assert data["shipping_price"] == 1000


def test_validate_promo_endpoint(client):
    ok = client.post("/orders/validate-promo", json={"promo_code": "WELCOME20", "order_total": 10000})
    assert ok.status_code == 200
    assert ok.json()["discount"] == 2000

    bad = client.post("/orders/validate-promo", json={"promo_code": "NOPE", "order_total": 10000})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid promo code"


def test_products_admin_and_public(client, session, admin_headers, user_headers):
    created = client.post(
        "/products",
        json={"name": "Hoodie", "price": 25000, "count_in_stock": 5},
        headers=admin_headers,
    )
    assert created.status_code == 201
    product_id = created.json()["id"]

    assert client.post("/products", json={"name": "x", "price": 1}, headers=user_headers).status_code == 403

    updated = client.put(f"/products/{product_id}", json={"price": 27000}, headers=admin_headers)
    assert updated.json()["price"] == 27000

    listing = client.get("/products?q=hood").json()
    assert listing["total_items"] == 1

    client.put(f"/products/{product_id}", json={"is_active": False}, headers=admin_headers)
    assert client.get(f"/products/{product_id}").status_code == 404
    assert session.get(Product, product_id) is not None


def test_muted_audience_has_no_channels():
    rules = {
        Channel.POPUP_USER: True,
        Channel.EMAIL_USER: False,
        Channel.EMAIL_ADMIN: True,
        Channel.INAPP_ADMIN: True,
    }

    assert enabled_channels(rules) == {Channel.POPUP_USER, Channel.EMAIL_ADMIN, Channel.INAPP_ADMIN}
    assert enabled_channels(rules, notify_admin=False) == {Channel.POPUP_USER}
    assert enabled_channels(rules, notify_user=False) == {Channel.EMAIL_ADMIN, Channel.INAPP_ADMIN}
