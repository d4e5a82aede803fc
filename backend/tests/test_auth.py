# backend/tests/test_auth.py
from climate_api.core.config import settings
from climate_api.core.security import decode_access_token, extract_token_from_header, hash_password, verify_password


def test_login_returns_token_user_and_lifetime(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200

    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["expiresIn"] == "24h"
    assert data["user"]["username"] == "admin"
    assert data["user"]["role"] == "admin"
    assert "passwordHash" not in data["user"]
    assert "password_hash" not in data["user"]

    principal = decode_access_token(data["token"])
    assert principal.user_id == "user-1"
    assert principal.role == "admin"


def test_login_wrong_password_and_unknown_user_look_the_same(client):
    wrong = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})

    for resp in (wrong, unknown):
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid credentials"
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_login_missing_fields_is_400(client):
    resp = client.post("/api/auth/login", json={"username": "admin"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_login_is_rate_limited_per_client(client):
    for _ in range(5):
        client.post("/api/auth/login", json={"username": "admin", "password": "bad"})

    resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "RATE_LIMITED"


def test_forwarded_for_header_cannot_reset_the_login_limit(client):
    # The header is client-controlled unless a trusted proxy rewrites it
    for i in range(20):
        resp = client.post(
            "/api/auth/login",
            json={"username": "admin", "password": "bad"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )

    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "RATE_LIMITED"


def test_forwarded_for_keys_the_limit_behind_a_trusted_proxy(client, monkeypatch):
    monkeypatch.setattr(settings, "trusted_proxy", True)
    bad = {"username": "admin", "password": "bad"}

    for _ in range(5):
        client.post("/api/auth/login", json=bad, headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

    limited = client.post("/api/auth/login", json=bad, headers={"X-Forwarded-For": "10.0.0.1"})
    assert limited.status_code == 429

    other = client.post("/api/auth/login", json=bad, headers={"X-Forwarded-For": "10.0.0.2"})
    assert other.status_code == 401


def test_register_creates_operator_and_logs_in(client, store):
    resp = client.post(
        "/api/auth/register",
        json={"username": "newbie", "email": "Newbie@Example.com", "password": "secret12"},
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["user"]["role"] == "operator"
    assert data["user"]["email"] == "newbie@example.com"
    assert data["token"]

    stored = store.users.find_one(username="newbie")
    assert stored is not None
    assert verify_password("secret12", stored.password_hash)

    login = client.post("/api/auth/login", json={"username": "newbie", "password": "secret12"})
    assert login.status_code == 200


def test_register_duplicate_username_is_409(client):
    resp = client.post(
        "/api/auth/register",
        json={"username": "admin", "email": "other@example.com", "password": "secret12"},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


def test_register_duplicate_email_is_409(client):
    resp = client.post(
        "/api/auth/register",
        json={"username": "someone", "email": "admin@climate.local", "password": "secret12"},
    )
    assert resp.status_code == 409


def test_protected_echoes_principal(client, operator_headers):
    resp = client.get("/api/protected", headers=operator_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"id": "user-2", "username": "operator", "role": "operator"}


def test_extract_token_from_header():
    assert extract_token_from_header("Bearer abc") == "abc"
    assert extract_token_from_header("bearer abc") is None
    assert extract_token_from_header("Bearer") is None
    assert extract_token_from_header("Bearer a b") is None
    assert extract_token_from_header(None) is None


def test_verify_password_rejects_missing_or_garbage_hash():
    assert verify_password("x", None) is False
    assert verify_password("x", "not-a-hash") is False
    assert verify_password("pw123456", hash_password("pw123456")) is True
