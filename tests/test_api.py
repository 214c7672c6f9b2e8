import pytest
from httpx import AsyncClient, ASGITransport

from mentorship_sync.exceptions import StoreUnavailableError
from mentorship_sync.main import app


@pytest.fixture
async def client(engine, session_factory, store):
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.record_store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _register_and_login(client, username, first_name, last_name, role):
    r = await client.post("/register", json={
        "username": username,
        "password": "s3cret-pass",
        "first_name": first_name,
        "last_name": last_name,
        "role": role,
    })
    assert r.status_code == 201, r.text
    user_id = r.json()["id"]

    t = await client.post("/token", data={"username": username, "password": "s3cret-pass"})
    assert t.status_code == 200, t.text
    return user_id, {"Authorization": f"Bearer {t.json()['access_token']}"}


async def test_request_lifecycle_over_http(client):
    mentor_id, mentor_auth = await _register_and_login(client, "grace", "Grace", "Hopper", "mentor")
    other_id, other_auth = await _register_and_login(client, "barbara", "Barbara", "Liskov", "mentor")
    _, mentee_auth = await _register_and_login(client, "ada", "Ada", "Lovelace", "mentee")

    capacity = await client.get("/api/mentors/me/capacity", headers=mentor_auth)
    assert capacity.json() == {"mentor_id": mentor_id, "active_mentees": 0, "mentee_limit": 5}

    r = await client.put("/api/mentors/me/capacity", json={"mentee_limit": 1}, headers=mentor_auth)
    assert r.status_code == 200

    first = (await client.post(f"/api/mentors/{mentor_id}/requests", json={"message": "first"}, headers=mentee_auth)).json()["id"]
    second = (await client.post(f"/api/mentors/{mentor_id}/requests", json={"message": "second"}, headers=mentee_auth)).json()["id"]

    pending = await client.get("/api/mentors/me/requests/pending", headers=mentor_auth)
    assert [r["id"] for r in pending.json()] == [second, first]
    assert pending.json()[0]["mentee_name"] == "Ada Lovelace"

    # Only the addressed mentor may act on a request
    r = await client.put(f"/api/requests/{first}/accept", headers=other_auth)
    assert r.status_code == 403

    r = await client.put(f"/api/requests/{first}/accept", headers=mentor_auth)
    assert r.status_code == 200
    assert r.json()["status"] == "accepted"

    r = await client.put(f"/api/requests/{second}/accept", headers=mentor_auth)
    assert r.status_code == 409
    assert r.json()["detail"] == "Mentee limit of 1 reached!"

    r = await client.put(f"/api/requests/{first}/reject", headers=mentor_auth)
    assert r.status_code == 409

    sent = await client.get("/api/mentees/me/requests", headers=mentee_auth)
    assert {(r["id"], r["status"]) for r in sent.json()} == {(first, "accepted"), (second, "pending")}

    assert (await client.get(f"/api/requests/{second}", headers=other_auth)).status_code == 403
    assert (await client.get(f"/api/requests/{second}", headers=mentee_auth)).status_code == 200


async def test_submit_errors_over_http(client):
    _, mentee_auth = await _register_and_login(client, "ada", "Ada", "Lovelace", "mentee")

    r = await client.post("/api/mentors/missing/requests", json={"message": "hi"}, headers=mentee_auth)
    assert r.status_code == 404
    assert r.json()["detail"] == "Mentor profile not found"

    r = await client.post("/api/mentors/missing/requests", json={"message": "   "}, headers=mentee_auth)
    assert r.status_code == 422

    # /token also set the access_token cookie
    client.cookies.clear()
    r = await client.post("/api/mentors/missing/requests", json={"message": "hi"})
    assert r.status_code == 401

    r = await client.put("/api/requests/missing/reject", headers=mentee_auth)
    assert r.status_code == 404


async def test_failed_profile_setup_leaves_no_half_registered_account(client, store, monkeypatch):
    async def unavailable(collection, record):
        raise StoreUnavailableError()

    monkeypatch.setattr(store, "create", unavailable)
    r = await client.post("/register", json={
        "username": "grace",
        "password": "s3cret-pass",
        "first_name": "Grace",
        "last_name": "Hopper",
        "role": "mentor",
    })
    assert r.status_code == 503

    t = await client.post("/token", data={"username": "grace", "password": "s3cret-pass"})
    assert t.status_code == 401

    monkeypatch.undo()
    mentor_id, mentor_auth = await _register_and_login(client, "grace", "Grace", "Hopper", "mentor")
    capacity = await client.get("/api/mentors/me/capacity", headers=mentor_auth)
    assert capacity.status_code == 200
    assert capacity.json()["mentor_id"] == mentor_id
