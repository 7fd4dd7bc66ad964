from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from models.seller import Role
from routes.auth import get_notifier
from utils.security import get_seller_store, get_session_store

from .helpers.fakes import FakeDb


@pytest.fixture
def db():
    return FakeDb()


@pytest.fixture
def client(store, sessions, notifier, db):
    app.dependency_overrides[get_seller_store] = lambda: store
    app.dependency_overrides[get_session_store] = lambda: sessions
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _signup(client, email="a@x.com"):
    r = client.post("/api/seller-auth/signup", json={
        "email": email,
        "phone_number": "555-0100",
        "password": "pw1",
    })
    assert r.status_code == 201, r.text
    return r.json()["seller_id"]


def _login(client, seller_id, contact="a@x.com", password="pw1"):
    return client.post("/api/seller-auth/login", json={
        "seller_id": seller_id,
        "email_or_phone": contact,
        "password": password,
    })


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_full_seller_flow(client, store, sessions, db):
    seller_id = _signup(client)

    r = client.get("/api/seller-auth/verify-email", params={"token": "wrong-token"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_token"

    r = _login(client, seller_id)
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "not_verified"

    token = store.records[seller_id].verification_token
    r = client.get("/api/seller-auth/verify-email", params={"token": token})
    assert r.status_code == 200
    assert store.records[seller_id].email_verified

    r = _login(client, seller_id)
    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "seller"
    access_token = body["access_token"]

    r = client.get("/api/seller-auth/me", headers=_bearer(access_token))
    assert r.status_code == 200
    assert r.json()["seller_id"] == seller_id
    assert r.json()["logged_in"] == "loggedin"

    r = client.post(
        "/api/seller-auth/logout",
        json={"seller_id": seller_id},
        headers=_bearer(access_token),
    )
    assert r.status_code == 200
    assert r.json()["logged_in"] == "loggedout"
    assert sessions.bindings == {}

    r = client.get("/api/seller-auth/me", headers=_bearer(access_token))
    assert r.status_code == 401

    actions = [doc["action"] for doc in db.audit_logs.docs]
    assert actions == ["SELLER_SIGNUP", "SELLER_EMAIL_VERIFIED", "SELLER_LOGIN", "SELLER_LOGOUT"]


def test_admin_route_requires_admin(client, store):
    seller_id = _signup(client)
    store.records[seller_id].email_verified = True
    token = _login(client, seller_id).json()["access_token"]

    r = client.get("/api/seller-auth/admin-only", headers=_bearer(token))
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "forbidden"

    store.records[seller_id].role = Role.ADMIN
    r = client.get("/api/seller-auth/admin-only", headers=_bearer(token))
    assert r.status_code == 200


def test_protected_route_without_or_with_bad_token(client):
    assert client.get("/api/seller-auth/me").status_code == 401
    r = client.get("/api/seller-auth/me", headers=_bearer("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["detail"]["error"] == "unauthenticated"


def test_login_errors_look_the_same(client, store):
    seller_id = _signup(client)
    store.records[seller_id].email_verified = True

    wrong_contact = _login(client, seller_id, contact="b@x.com")
    wrong_id = _login(client, "MBSLR00000")
    wrong_password = _login(client, seller_id, password="nope")

    assert wrong_contact.status_code == wrong_id.status_code == wrong_password.status_code == 401
    assert wrong_contact.json() == wrong_id.json() == wrong_password.json()


def test_duplicate_signup(client):
    _signup(client)
    r = client.post("/api/seller-auth/signup", json={
        "email": "A@x.com",
        "phone_number": "555-0101",
        "password": "pw2",
    })
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "duplicate_email"


def test_missing_fields_are_validation_errors(client):
    r = client.post("/api/seller-auth/login", json={"seller_id": "MBSLR12345"})
    assert r.status_code == 400
    body = r.json()["detail"]
    assert body["error"] == "validation_error"
    assert "password" in body["fields"]


def test_verify_seller(client):
    seller_id = _signup(client)

    r = client.post("/api/seller-auth/verify-seller", json={"seller_id": seller_id})
    assert r.status_code == 200
    assert r.json()["logged_in"] == "loggedout"

    r = client.post("/api/seller-auth/verify-seller", json={"seller_id": "MBSLR00000"})
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "invalid_seller_id"


def test_logout_unknown_seller(client):
    r = client.post("/api/seller-auth/logout", json={"seller_id": "MBSLR00000"})
    assert r.status_code == 404


def test_resend_verification_is_rate_limited(client):
    _signup(client)
    for _ in range(3):
        r = client.post("/api/seller-auth/resend-verification-email", json={"email": "a@x.com"})
        assert r.status_code == 200

    r = client.post("/api/seller-auth/resend-verification-email", json={"email": "a@x.com"})
    assert r.status_code == 429
    assert r.json()["detail"]["error"] == "rate_limited"


def test_phone_otp_routes(client, store):
    seller_id = _signup(client)

    r = client.post("/api/seller-auth/phone/send-otp", json={"seller_id": seller_id})
    assert r.status_code == 200

    r = client.post("/api/seller-auth/phone/verify-otp", json={"seller_id": seller_id, "otp": "12345"})
    assert r.status_code == 400

    assert store.records[seller_id].phone_otp_hash is not None


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_logout_with_someone_elses_token_is_forbidden(client, store, sessions):
    a_id = _signup(client)
    b_id = _signup(client, email="b@x.com")
    store.records[a_id].email_verified = True
    store.records[b_id].email_verified = True
    _login(client, a_id)
    b_token = _login(client, b_id, contact="b@x.com").json()["access_token"]

    r = client.post(
        "/api/seller-auth/logout",
        json={"seller_id": a_id},
        headers=_bearer(b_token),
    )
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "forbidden"
    assert store.records[a_id].session_state.value == "loggedin"
    assert len(sessions.bindings) == 2

    r = client.get("/api/seller-auth/me", headers=_bearer(b_token))
    assert r.status_code == 200
    assert r.json()["seller_id"] == b_id


def test_rate_limit_store_outage_is_a_dependency_error(client, store, notifier, db):
    seller_id = _signup(client)
    sent_before = len(notifier.emails)
    db.rate_limits.fail = True

    r = client.post("/api/seller-auth/resend-verification-email", json={"email": "a@x.com"})
    assert r.status_code == 503
    assert r.json()["detail"]["error"] == "dependency_error"

    r = client.post("/api/seller-auth/phone/send-otp", json={"seller_id": seller_id})
    assert r.status_code == 503
    assert r.json()["detail"]["error"] == "dependency_error"

    assert len(notifier.emails) == sent_before
    assert store.records[seller_id].phone_otp_hash is None
