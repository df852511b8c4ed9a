from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from app.exceptions import ValidationException
from app.models.otp import OTP, OTPPurpose
from app.services import otp_service
from app.utils.hash import verify_password


def test_register_login_and_me(client):
    registered = client.post(
        "/auth/register",
        json={
            "name": "Tola",
            "email": "Tola@Example.com",
            "password": "secret123",
            "confirm_password": "secret123",
        },
    )
    assert registered.status_code == 201
    assert registered.json()["email"] == "tola@example.com"

    duplicate = client.post(
        "/auth/register",
        json={
            "name": "Tola",
            "email": "tola@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
        },
    )
    assert duplicate.status_code == 400

    login = client.post("/auth/login", json={"email": "tola@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["name"] == "Tola"


def test_login_wrong_password(client, user):
    response = client.post("/auth/login", json={"email": user.email, "password": "wrong"})

    assert response.status_code == 401


def test_register_password_mismatch(client):
    response = client.post(
        "/auth/register",
        json={"name": "A", "email": "a@example.com", "password": "secret123", "confirm_password": "other123"},
    )

    assert response.status_code == 422


def test_otp_login_flow(client, session, user, monkeypatch):
    monkeypatch.setattr(otp_service, "generate_code", lambda: "123456")

    sent = client.post("/otp/send", json={"email": user.email, "purpose": "login"})
    assert sent.status_code == 200

    otp = session.exec(select(OTP).where(OTP.email == user.email)).one()
    assert otp.code_hash != "123456"

    verified = client.post("/otp/verify", json={"email": user.email, "code": "123456", "purpose": "login"})
    assert verified.status_code == 200
    assert verified.json()["token_type"] == "bearer"

    reused = client.post("/otp/verify", json={"email": user.email, "code": "123456", "purpose": "login"})
    assert reused.status_code == 400


def test_otp_attempts_are_limited(client, session, user, monkeypatch):
    monkeypatch.setattr(otp_service, "generate_code", lambda: "123456")
    client.post("/otp/send", json={"email": user.email, "purpose": "login"})

    for remaining in (2, 1, 0):
        response = client.post("/otp/verify", json={"email": user.email, "code": "000000", "purpose": "login"})
        assert response.status_code == 400
        assert f"{remaining} attempt(s) remaining" in response.json()["message"]

    locked = client.post("/otp/verify", json={"email": user.email, "code": "123456", "purpose": "login"})
    assert locked.status_code == 400
    assert "Too many attempts" in locked.json()["message"]


def test_otp_expires(session, user):
    code = otp_service.create_otp(session, user.email, OTPPurpose.login)
    otp = session.exec(select(OTP).where(OTP.email == user.email)).one()
    otp.expires_at = datetime.utcnow() - timedelta(seconds=1)
    session.add(otp)
    session.commit()

    with pytest.raises(ValidationException, match="expired"):
        otp_service.verify_otp(session, user.email, code, OTPPurpose.login)


def test_forgot_password_reset(client, session, user, monkeypatch):
    monkeypatch.setattr(otp_service, "generate_code", lambda: "654321")

    client.post("/otp/send", json={"email": user.email, "purpose": "forgot_password"})
    checked = client.post(
        "/otp/verify",
        json={"email": user.email, "code": "654321", "purpose": "forgot_password"},
    )
    assert checked.status_code == 200

    reset = client.post(
        "/otp/reset-password",
        json={"email": user.email, "code": "654321", "new_password": "brandnew1"},
    )
    assert reset.status_code == 200

    session.refresh(user)
    assert verify_password("brandnew1", user.password)


def test_forgot_password_unknown_email_is_not_revealed(client):
    response = client.post("/otp/send", json={"email": "ghost@example.com", "purpose": "forgot_password"})

    assert response.status_code == 200


def test_saved_cart_round_trip(client, user_headers):
    saved = client.post(
        "/cart/save",
        json={"items": [{"product_id": 1, "name": "Classic Tee", "price": 10000, "qty": 2}]},
        headers=user_headers,
    )
    assert saved.status_code == 200
    assert saved.json()["total"] == 20000

    assert client.get("/cart", headers=user_headers).json()["items"][0]["qty"] == 2

    cleared = client.delete("/cart/clear", headers=user_headers)
    assert cleared.json()["cleared"] is True
    assert client.get("/cart", headers=user_headers).json()["items"] == []


def test_health_check(client):
    data = client.get("/health/check").json()

    assert data["status"] == "ok"
    assert data["payments"] == "configured"
    assert data["email"] == "disabled"
    assert data["webhook_rate_limit"] == {"limit": 10, "window_seconds": 60}


def test_bad_token_is_unauthorized(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_disabled_account_is_forbidden(client, session, user, user_headers):
    user.is_active = False
    session.add(user)
    session.commit()

    assert client.get("/auth/me", headers=user_headers).status_code == 403


def test_page_limit_is_clamped(client, user, user_headers, make_order):
    make_order(user)

    data = client.get("/orders/myorders?page=0&limit=500", headers=user_headers).json()

    assert data["current_page"] == 1
    assert data["limit"] == 100
    assert data["total_items"] == 1
