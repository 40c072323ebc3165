import os

import pytest

import config
from config import jwt_config
from gdip.services.auth_service import AuthService


def _token_cookie(client):
    cookie = client.get_cookie(jwt_config["cookie_name"])
    return cookie.value if cookie else None


def test_register_then_login_issues_role_token(driver_app, driver_client):
    resp = driver_client.post(
        "/auth/register",
        json={"email": "New.Driver@Example.com", "password": "password123", "firstName": "Dana"},
    )
    assert resp.status_code == 201
    user = resp.get_json()["user"]
    assert user["email"] == "new.driver@example.com"
    assert user["role"] == "driver"

    resp = driver_client.post("/auth/login", json={"email": "new.driver@example.com", "password": "password123"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["user"] == {"id": user["id"], "email": "new.driver@example.com", "role": "driver"}

    token = _token_cookie(driver_client)
    assert token
    with driver_app.app_context():
        claims = AuthService.read_claims(token)
    assert claims["role"] == "driver"
    assert claims["sub"] == str(user["id"])


def test_register_creates_profile_with_registration_fields(sponsor_client, signup):
    signup(sponsor_client, "s@x.com", companyName="Acme")
    resp = sponsor_client.get("/me")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["role"] == "sponsor"
    assert body["profile"]["company_name"] == "Acme"


def test_duplicate_email_is_conflict_case_insensitive(driver_client):
    payload = {"email": "dup@x.com", "password": "password123"}
    assert driver_client.post("/auth/register", json=payload).status_code == 201
    resp = driver_client.post("/auth/register", json={"email": "DUP@x.com", "password": "password123"})
    assert resp.status_code == 409
    assert resp.get_json() == {"error": "Email already in use"}


def test_register_validates_input(driver_client):
    resp = driver_client.post("/auth/register", json={"email": "not-an-email", "password": "short"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid input"
    assert "email" in body["details"]


def test_register_rejects_non_object_body(driver_client):
    resp = driver_client.post("/auth/register", json=["a", "b"])
    assert resp.status_code == 400


def test_wrong_password_and_unknown_email_are_indistinguishable(driver_client, signup):
    signup(driver_client, "d@x.com")
    driver_client.post("/auth/logout")

    wrong = driver_client.post("/auth/login", json={"email": "d@x.com", "password": "nope-nope"})
    unknown = driver_client.post("/auth/login", json={"email": "ghost@x.com", "password": "password123"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json() == {"error": "Invalid credentials"}


def test_login_on_another_role_service_is_rejected(driver_client, sponsor_client, signup):
    signup(driver_client, "d@x.com")
    resp = sponsor_client.post("/auth/login", json={"email": "d@x.com", "password": "password123"})
    assert resp.status_code == 401


def test_token_from_another_role_is_forbidden(driver_client, sponsor_client, signup):
    signup(driver_client, "d@x.com")
    token = _token_cookie(driver_client)

    sponsor_client.set_cookie(jwt_config["cookie_name"], token)
    resp = sponsor_client.get("/me")
    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Wrong role for this service"}


def test_missing_and_garbage_tokens_are_unauthenticated(driver_client):
    resp = driver_client.get("/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Not authenticated"}

    driver_client.set_cookie(jwt_config["cookie_name"], "not-a-jwt")
    resp = driver_client.get("/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid token"}


def test_logout_clears_cookie(driver_client, signup):
    signup(driver_client, "d@x.com")
    assert driver_client.get("/me").status_code == 200

    resp = driver_client.post("/auth/logout")
    assert resp.get_json() == {"ok": True}
    assert driver_client.get("/me").status_code == 401


def test_change_password(driver_client, signup):
    signup(driver_client, "d@x.com")

    resp = driver_client.put("/me/password", json={"currentPassword": "wrong-one", "newPassword": "another-pass"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid current password"}

    resp = driver_client.put("/me/password", json={"currentPassword": "password123", "newPassword": "password123"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "New password must be different"}

    resp = driver_client.put("/me/password", json={"currentPassword": "password123", "newPassword": "short"})
    assert resp.status_code == 400

    resp = driver_client.put("/me/password", json={"currentPassword": "password123", "newPassword": "another-pass"})
    assert resp.status_code == 200

    driver_client.post("/auth/logout")
    assert driver_client.post("/auth/login", json={"email": "d@x.com", "password": "password123"}).status_code == 401
    assert driver_client.post("/auth/login", json={"email": "d@x.com", "password": "another-pass"}).status_code == 200


def test_repeated_failed_logins_are_throttled(make_service):
    app = make_service("driver", LOGIN_MAX_ATTEMPTS=3)
    client = app.test_client()
    for _ in range(3):
        resp = client.post("/auth/login", json={"email": "ghost@x.com", "password": "password123"})
        assert resp.status_code == 401
    resp = client.post("/auth/login", json={"email": "ghost@x.com", "password": "password123"})
    assert resp.status_code == 429


def test_healthz_and_security_headers(sponsor_client):
    resp = sponsor_client.get("/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {"ok": True, "service": "sponsor"}
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_is_json_404(driver_client):
    resp = driver_client.get("/no/such/route")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not found"}


def test_role_blueprints_only_on_their_service(driver_client, sponsor_client, signup):
    signup(driver_client, "d@x.com")
    signup(sponsor_client, "s@x.com", companyName="Acme")
    # /drivers is a sponsor route, /sponsors a driver route
    assert driver_client.get("/drivers").status_code == 404
    assert sponsor_client.get("/sponsors").status_code == 404


def test_cookie_csrf_protection_on_state_changes(make_service, signup):
    app = make_service("driver", JWT_COOKIE_CSRF_PROTECT=True)
    client = app.test_client()
    signup(client, "d@x.com")
    assert client.get("/me").status_code == 200

    resp = client.put("/me/profile", json={"city": "Austin"})
    assert resp.status_code == 401

    csrf = client.get_cookie("csrf_access_token").value
    resp = client.put("/me/profile", json={"city": "Austin"}, headers={"X-CSRF-TOKEN": csrf})
    assert resp.status_code == 200


def test_csrf_protection_is_on_by_default():
    if "COOKIE_CSRF_PROTECT" in os.environ:
        pytest.skip("COOKIE_CSRF_PROTECT set in the environment")
    assert config.Config.JWT_COOKIE_CSRF_PROTECT is True
