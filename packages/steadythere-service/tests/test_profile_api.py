"""Profile endpoint tests."""

from _fakes import bearer


def test_get_profile(client, fakes):
    user = fakes.add_user(name="Alice")
    resp = client.get("/api/v1/profile", headers=bearer(user))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice"


def test_update_profile_returns_refreshed_profile(client, fakes):
    user = fakes.add_user(name="Alice")
    resp = client.patch(
        "/api/v1/profile",
        json={"name": "Alice Liddell", "timezone": "Europe/London"},
        headers=bearer(user),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Alice Liddell"
    assert data["timezone"] == "Europe/London"
    fakes.session.commit.assert_awaited()


def test_partial_update_leaves_other_fields(client, fakes):
    user = fakes.add_user(name="Alice")
    resp = client.patch("/api/v1/profile", json={"timezone": "Asia/Tokyo"}, headers=bearer(user))
    assert resp.json()["name"] == "Alice"


def test_update_profile_requires_authentication(client):
    assert client.patch("/api/v1/profile", json={"name": "x"}).status_code == 401
