import json
import threading
import time

from sqlmodel import select

from app.config import settings
from app.models.order import Order
from app.models.order_event import OrderEvent
from app.models.payment import Payment
from app.routes import webhooks
from app.services import webhook_service
from app.services.webhook_service import compute_signature, parse_event, verify_signature


def signed(payload, secret=None):
    body = json.dumps(payload).encode()
    return body, {
        "Content-Type": "application/json",
        "X-Paystack-Signature": compute_signature(secret or settings.PAYSTACK_SECRET_KEY, body),
    }


def charge_success(reference, amount, order_id=None, currency="NGN"):
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "status": "success",
            "amount": amount,
            "currency": currency,
            "channel": "card",
            "gateway_response": "Approved",
            "customer": {"email": "buyer@example.com"},
            "metadata": {"order_id": order_id} if order_id else {},
        },
    }


def add_payment(session, order, reference="MLF_TEST_1", amount=None):
    payment = Payment(
        order_id=order.id,
        user_id=order.user_id,
        reference=reference,
        amount=amount if amount is not None else int(order.total_price * 100),
        customer_email="buyer@example.com",
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    return payment


def test_signature_helpers():
    body = b'{"event":"charge.success"}'
    signature = compute_signature("secret", body)

    assert len(signature) == 128
    assert verify_signature(body, signature, "secret")
    assert not verify_signature(body + b" ", signature, "secret")
    assert not verify_signature(body, None, "secret")


def test_parse_event_requires_envelope():
    assert parse_event(b"not json") is None
    assert parse_event(b"[]") is None
    assert parse_event(b'{"event": "charge.success"}') is None
    assert parse_event(b'{"event": "charge.success", "data": {}}') == ("charge.success", {})


def test_charge_success_marks_order_paid(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)

    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["processed"] is True

    session.refresh(order)
    session.refresh(payment)
    assert order.is_paid
    assert order.status == "Processing"
    assert order.paid_at is not None
    assert payment.status == "success"
    assert payment.webhook_verified
    assert payment.webhook_events[-1]["event"] == "charge.success"


def test_duplicate_webhook_is_idempotent(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)
    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))

    assert client.post("/webhooks/paystack", content=body, headers=headers).status_code == 200
    session.refresh(order)
    first_paid_at = order.paid_at

    second = client.post("/webhooks/paystack", content=body, headers=headers)
    assert second.status_code == 200
    assert second.json()["already_processed"] is True

    session.refresh(order)
    assert order.paid_at == first_paid_at

    events = session.exec(
        select(OrderEvent).where(
            OrderEvent.order_id == order.id,
            OrderEvent.event_type == "payment_success",
        )
    ).all()
    assert len(events) == 1


def test_tampered_body_is_rejected(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)
    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))

    tampered = body.replace(b'"Approved"', b'"Approvee"')
    response = client.post("/webhooks/paystack", content=tampered, headers=headers)

    assert response.status_code == 401
    session.refresh(order)
    assert not order.is_paid


def test_missing_signature_is_rejected(client):
    body = json.dumps(charge_success("MLF_X", 100)).encode()
    response = client.post("/webhooks/paystack", content=body)

    assert response.status_code == 401


def test_missing_secret_is_server_error(client, monkeypatch):
    body, headers = signed(charge_success("MLF_X", 100))
    monkeypatch.setattr(settings, "PAYSTACK_SECRET_KEY", None)

    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 500


def test_malformed_payload_is_bad_request(client):
    body = b'{"hello": "world"}'
    headers = {"X-Paystack-Signature": compute_signature(settings.PAYSTACK_SECRET_KEY, body)}

    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 400


def test_unsupported_event_is_acknowledged(client):
    body, headers = signed({"event": "subscription.create", "data": {"id": 1}})

    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Event acknowledged but not processed"


def test_rate_limit_per_ip(client):
    body, headers = signed({"event": "subscription.create", "data": {}})

    statuses = [
        client.post("/webhooks/paystack", content=body, headers=headers).status_code
        for _ in range(11)
    ]

    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429


def test_slow_processing_times_out(client, monkeypatch):
    def slow_handler(session, event, data):
        time.sleep(0.5)
        return {"processed": True}

    monkeypatch.setattr(settings, "WEBHOOK_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr("app.routes.webhooks.handle_event", slow_handler)

    body, headers = signed({"event": "transfer.success", "data": {"reference": "TRF_1"}})
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 408


def test_amount_mismatch_is_acknowledged_without_crediting(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)

    body, headers = signed(charge_success(payment.reference, payment.amount - 100, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["processed"] is False
    session.refresh(order)
    assert not order.is_paid


def test_fallback_without_payment_record(client, session, user, make_order):
    order = make_order(user)
    amount = int(order.total_price * 100)

    body, headers = signed(charge_success("MLF_UNSEEN", amount, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    session.refresh(order)
    assert order.is_paid

    payment = session.exec(select(Payment).where(Payment.reference == "MLF_UNSEEN")).one()
    assert payment.status == "success"
    assert payment.amount == amount


def test_fallback_rejects_wrong_currency(client, session, user, make_order):
    order = make_order(user)
    amount = int(order.total_price * 100)

    body, headers = signed(charge_success("MLF_USD", amount, order.id, currency="USD"))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    session.refresh(order)
    assert not order.is_paid
    assert session.exec(select(Payment).where(Payment.reference == "MLF_USD")).first() is None


def test_payment_for_cancelled_order_is_acknowledged(client, session, user, make_order):
    order = make_order(user, status="Cancelled")
    payment = add_payment(session, order)

    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["processed"] is False
    session.refresh(order)
    assert order.status == "Cancelled"
    assert not order.is_paid


def test_dispute_is_recorded(client, session, user, make_order):
    order = make_order(user, status="Processing", is_paid=True)
    payment = add_payment(session, order)

    body, headers = signed(
        {
            "event": "charge.dispute.create",
            "data": {
                "id": 77,
                "status": "awaiting-merchant-feedback",
                "reason": "Item not received",
                "transaction": {"reference": payment.reference},
            },
        }
    )
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    session.refresh(payment)
    assert payment.disputes[0]["dispute_id"] == 77
    assert payment.disputes[0]["reason"] == "Item not received"
    assert payment.webhook_verified


def test_legacy_webhook_path(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)
    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))

    response = client.post("/payments/paystack/webhook", content=body, headers=headers)

    assert response.status_code == 200
    session.refresh(order)
    assert order.is_paid


def test_handle_event_transfer_without_payment(session):
    result = webhook_service.handle_event(session, "transfer.failed", {"reference": "TRF_9"})

    assert result == {"processed": True}


def test_only_one_attempt_succeeds_per_order(client, session, user, make_order):
    order = make_order(user)
    first = add_payment(session, order, reference="MLF_A")
    second = add_payment(session, order, reference="MLF_B")

    body, headers = signed(charge_success(first.reference, first.amount, order.id))
    assert client.post("/webhooks/paystack", content=body, headers=headers).json()["already_processed"] is False

    body, headers = signed(charge_success(second.reference, second.amount, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 200
    assert response.json()["already_processed"] is True
    assert response.json()["payment_status"] == "failed"

    session.refresh(order)
    session.refresh(first)
    session.refresh(second)
    assert order.payment_reference == "MLF_A"
    assert first.status == "success"
    assert second.status == "failed"
    assert second.failure_reason == "already_processed"

    # replaying the winning charge changes nothing
    body, headers = signed(charge_success(first.reference, first.amount, order.id))
    replay = client.post("/webhooks/paystack", content=body, headers=headers)

    assert replay.json()["payment_status"] == "success"
    successes = session.exec(
        select(Payment).where(Payment.order_id == order.id, Payment.status == "success")
    ).all()
    assert [p.reference for p in successes] == ["MLF_A"]


def test_signed_charge_without_reference_is_bad_request(client, session, user, make_order):
    order = make_order(user)
    payload = charge_success("MLF_X", 2000, order.id)
    del payload["data"]["reference"]

    body, headers = signed(payload)
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    session.refresh(order)
    assert not order.is_paid


def test_signed_charge_with_non_numeric_amount_is_bad_request(client, session, user, make_order):
    order = make_order(user)
    payment = add_payment(session, order)

    body, headers = signed(charge_success(payment.reference, "abc", order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 400
    session.refresh(payment)
    assert payment.status == "pending"


def test_dispute_with_malformed_transaction_is_bad_request(client):
    body, headers = signed(
        {"event": "charge.dispute.create", "data": {"id": 78, "transaction": "MLF_A"}}
    )

    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 400


def test_timed_out_webhook_still_commits_in_its_own_session(client, session, user, make_order, monkeypatch):
    order = make_order(user)
    payment = add_payment(session, order)
    seen = []
    finished = threading.Event()

    def slow_handler(worker_session, event, data):
        seen.append(worker_session)
        time.sleep(0.2)
        return webhook_service.handle_event(worker_session, event, data)

    real_process = webhooks._process_in_own_session

    def tracked_process(*args):
        try:
            return real_process(*args)
        finally:
            finished.set()

    monkeypatch.setattr(settings, "WEBHOOK_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(webhooks, "handle_event", slow_handler)
    monkeypatch.setattr(webhooks, "_process_in_own_session", tracked_process)

    body, headers = signed(charge_success(payment.reference, payment.amount, order.id))
    response = client.post("/webhooks/paystack", content=body, headers=headers)

    assert response.status_code == 408
    assert finished.wait(5)
    assert seen[0] is not session

    session.refresh(order)
    session.refresh(payment)
    assert order.is_paid
    assert payment.status == "success"
