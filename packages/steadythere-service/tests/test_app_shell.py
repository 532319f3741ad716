"""Guarded page routes: redirects, onboarding and the full sign-in flow."""

from __future__ import annotations

import asyncio

from _fakes import ALICE_EMAIL, ALICE_PASSWORD, FakeOrganizationsRepo, bearer

from steadythere_service.auth.deps import get_membership_source
from steadythere_service.settings import settings


def _get(client, path, **kwargs):
    return client.get(path, follow_redirects=False, **kwargs)


# ---------------------------------------------------------------------------
# Unauthenticated
# ---------------------------------------------------------------------------


def test_unauthenticated_app_redirects_to_login_with_return_path(client):
    resp = _get(client, "/app")
    assert resp.status_code == 307
    assert resp.headers["location"] == "/login?next=%2Fapp"


def test_return_path_keeps_query_string(client):
    resp = _get(client, "/app/settings?tab=team")
    assert resp.headers["location"] == "/login?next=%2Fapp%2Fsettings%3Ftab%3Dteam"


def test_unauthenticated_onboarding_redirects_to_login(client):
    resp = _get(client, "/onboarding")
    assert resp.status_code == 307
    assert resp.headers["location"] == "/login?next=%2Fonboarding"


def test_login_page_echoes_next(client):
    assert _get(client, "/login?next=/app/settings").json()["next"] == "/app/settings"
    assert _get(client, "/login").json()["next"] == "/app"
    assert _get(client, "/login?next=//evil.example").json()["next"] == "/app"


def test_invalid_token_is_treated_as_signed_out(client):
    resp = _get(client, "/app", headers={"Authorization": "Bearer not.a.token"})
    assert resp.status_code == 307
    assert resp.headers["location"].startswith("/login")


# ---------------------------------------------------------------------------
# Signed in
# ---------------------------------------------------------------------------


def test_user_without_organization_is_sent_to_onboarding(client, fakes):
    user = fakes.add_user()
    resp = _get(client, "/app", headers=bearer(user))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/onboarding"

    onboarding = _get(client, "/onboarding", headers=bearer(user))
    assert onboarding.status_code == 200
    assert onboarding.json()["view"] == "onboarding"


def test_member_sees_dashboard(client, fakes):
    user = fakes.add_user()
    fakes.add_org(user, "Acme Events")
    resp = _get(client, "/app", headers=bearer(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["view"] == "dashboard"
    assert data["organization"]["name"] == "Acme Events"
    assert data["role"] == "org_admin"


def test_member_is_sent_away_from_onboarding(client, fakes):
    user = fakes.add_user()
    fakes.add_org(user)
    resp = _get(client, "/onboarding", headers=bearer(user))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/app"


def test_settings_requires_org_edit(client, fakes):
    admin = fakes.add_user()
    fakes.add_org(admin, "Acme Events")
    volunteer = fakes.add_user("vol@example.com")
    fakes.add_org(volunteer, "Helpers", role="volunteer")

    assert _get(client, "/app/settings", headers=bearer(admin)).json()["view"] == "settings"
    assert _get(client, "/app/settings", headers=bearer(volunteer)).status_code == 403


def test_still_loading_returns_503(client, fakes, monkeypatch):
    class HangingSource:
        interrupted = False

        async def fetch_profile(self, user_id):
            await asyncio.Event().wait()

        async def fetch_memberships(self, user_id):
            await asyncio.Event().wait()

    user = fakes.add_user()
    monkeypatch.setattr(settings, "auth_ready_timeout_seconds", 0.05)
    client.app.dependency_overrides[get_membership_source] = lambda: HangingSource()

    resp = _get(client, "/app", headers=bearer(user))
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"


class StalledOrganizationsRepo(FakeOrganizationsRepo):
    async def list_memberships(self, user_id):
        await asyncio.Event().wait()


def test_membership_fetch_timeout_rolls_back_session(client, fakes, monkeypatch):
    user = fakes.add_user()
    fakes.orgs = StalledOrganizationsRepo()
    monkeypatch.setattr(settings, "membership_fetch_timeout_seconds", 0.05)

    resp = _get(client, "/app", headers=bearer(user))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/onboarding"
    fakes.session.rollback.assert_awaited()


def test_completed_fetch_leaves_session_alone(client, fakes):
    user = fakes.add_user()
    fakes.add_org(user)
    assert _get(client, "/app", headers=bearer(user)).status_code == 200
    fakes.session.rollback.assert_not_awaited()


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_signup_onboarding_dashboard_logout(client):
    signup = client.post(
        "/api/v1/auth/signup", json={"email": "new@example.com", "password": "hunter22"}
    )
    assert signup.status_code == 201

    assert _get(client, "/app").headers["location"] == "/onboarding"

    created = client.post("/api/v1/organizations", json={"name": "New Org"})
    assert created.status_code == 201

    dashboard = _get(client, "/app")
    assert dashboard.status_code == 200
    assert dashboard.json()["organization"]["name"] == "New Org"

    assert client.post("/api/v1/auth/logout").status_code == 204
    assert _get(client, "/app").headers["location"] == "/login?next=%2Fapp"


def test_login_then_return_to_requested_page(client, fakes):
    user = fakes.add_user()
    fakes.add_org(user)

    redirect = _get(client, "/app/settings")
    assert redirect.headers["location"] == "/login?next=%2Fapp%2Fsettings"

    client.post("/api/v1/auth/login", json={"email": ALICE_EMAIL, "password": ALICE_PASSWORD})
    next_path = _get(client, "/login?next=/app/settings").json()["next"]
    assert _get(client, next_path).status_code == 200
