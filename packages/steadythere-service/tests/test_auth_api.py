"""Auth endpoint tests."""

from __future__ import annotations

from datetime import timedelta

import jwt as pyjwt
import pytest
from _fakes import ALICE_EMAIL, ALICE_PASSWORD, bearer

from steadythere_service.auth.jwt import (
    create_access_token,
    create_refresh_token,
    decode_token,
    token_subject,
)
from steadythere_service.auth.passwords import hash_password, verify_password

ACCESS_COOKIE = "steady_access_token"
ORG_COOKIE = "steady_current_org"


def _login(client, email=ALICE_EMAIL, password=ALICE_PASSWORD):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


def test_signup_creates_user_and_profile(client, fakes):
    resp = client.post(
        "/api/v1/auth/signup", json={"email": "new@example.com", "password": "hunter22"}
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert resp.cookies.get(ACCESS_COOKIE) == data["access_token"]

    user = fakes.auth._users["new@example.com"]
    profile = fakes.profiles._profiles[user.id]
    assert profile.name == "new"  # defaults to the e-mail local part
    fakes.session.commit.assert_awaited()


def test_signup_uses_given_name(client, fakes):
    client.post(
        "/api/v1/auth/signup",
        json={"email": "bob@example.com", "password": "hunter22", "name": "Bob"},
    )
    user = fakes.auth._users["bob@example.com"]
    assert fakes.profiles._profiles[user.id].name == "Bob"


def test_signup_duplicate_email_returns_409(client, fakes):
    fakes.add_user()
    resp = client.post(
        "/api/v1/auth/signup", json={"email": ALICE_EMAIL.upper(), "password": "hunter22"}
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "User already registered"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "x@example.com", "password": "short"},
        {"email": "not-an-email", "password": "long-enough"},
        {"email": "x@example.com"},
    ],
)
def test_signup_validation_returns_422(client, payload):
    assert client.post("/api/v1/auth/signup", json=payload).status_code == 422


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def test_login_returns_tokens_and_sets_cookie(client, fakes):
    user = fakes.add_user()
    resp = _login(client)
    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == str(user.id)
    assert resp.cookies.get(ACCESS_COOKIE) == data["access_token"]


def test_login_wrong_password_returns_401(client, fakes):
    fakes.add_user()
    resp = _login(client, password="wrong-password")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid login credentials"


def test_login_unknown_email_returns_401(client):
    assert _login(client, email="nobody@example.com").status_code == 401


def test_login_creates_missing_profile(client, fakes):
    user = fakes.auth.add("legacy@example.com", "legacy-pass")
    assert _login(client, "legacy@example.com", "legacy-pass").status_code == 200
    assert fakes.profiles._profiles[user.id].name == "legacy"


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


def test_refresh_returns_new_tokens(client, fakes):
    user = fakes.add_user()
    resp = client.post(
        "/api/v1/auth/refresh", json={"refresh_token": create_refresh_token(user.id)}
    )
    assert resp.status_code == 200
    payload = decode_token(resp.json()["access_token"])
    assert payload["sub"] == str(user.id)
    assert payload["type"] == "access"


def test_refresh_with_access_token_returns_401(client, fakes):
    user = fakes.add_user()
    access = create_access_token(user.id, user.email)
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": access}).status_code == 401


def test_refresh_with_invalid_token_returns_401(client):
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": "not.a.token"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# /me
# ---------------------------------------------------------------------------


def test_me_without_token_returns_401(client):
    assert client.get("/api/v1/auth/me").status_code == 401


def test_me_with_expired_token_returns_401(client, fakes):
    user = fakes.add_user()
    token = create_access_token(user.id, user.email, expires_delta=timedelta(seconds=-1))
    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_me_for_user_without_organizations(client, fakes):
    user = fakes.add_user(name="Alice")
    resp = client.get("/api/v1/auth/me", headers=bearer(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"] == {"id": str(user.id), "email": ALICE_EMAIL}
    assert data["profile"]["name"] == "Alice"
    assert data["memberships"] == []
    assert data["current_organization"] is None
    assert data["permissions"] == []


def test_me_includes_current_organization_and_permissions(client, fakes):
    user = fakes.add_user()
    org = fakes.add_org(user, "Acme Events")
    resp = client.get("/api/v1/auth/me", headers=bearer(user))
    data = resp.json()
    assert data["current_organization"]["id"] == str(org.id)
    assert data["current_membership"]["role"] == "org_admin"
    assert "org:edit" in data["permissions"]


def test_me_uses_access_cookie_after_login(client, fakes):
    fakes.add_user()
    _login(client)
    resp = client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == ALICE_EMAIL


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------


def test_logout_clears_session_and_org_cookies(client, fakes):
    user = fakes.add_user()
    fakes.add_org(user)
    _login(client)

    resp = client.post("/api/v1/auth/logout")
    assert resp.status_code == 204
    set_cookies = " ".join(resp.headers.get_list("set-cookie"))
    assert ACCESS_COOKIE in set_cookies
    assert ORG_COOKIE in set_cookies

    assert client.get("/api/v1/auth/me").status_code == 401


def test_logout_without_session_is_harmless(client):
    assert client.post("/api/v1/auth/logout").status_code == 204


# ---------------------------------------------------------------------------
# Auth utility unit tests
# ---------------------------------------------------------------------------


def test_access_token_has_no_organization_claim(fakes):
    user = fakes.add_user()
    payload = decode_token(create_access_token(user.id, user.email))
    assert payload["email"] == ALICE_EMAIL
    assert "org" not in payload


def test_token_subject_rejects_wrong_type(fakes):
    user = fakes.add_user()
    payload = decode_token(create_refresh_token(user.id))
    assert token_subject(payload, "refresh") == user.id
    with pytest.raises(pyjwt.InvalidTokenError):
        token_subject(payload, "access")


def test_hash_and_verify_password():
    hashed = hash_password("super-secret-password")
    assert hashed != "super-secret-password"
    assert verify_password("super-secret-password", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")
