from sinmungo.services.audit import list_audit_entries


def test_register_login_me(client, db):
    r = client.post(
        "/api/v1/register",
        json={"email": "New.User@Example.com", "password": "password123", "nickname": "새시민"},
    )
    assert r.status_code == 201
    assert r.json()["role"] == "citizen"

    r = client.post("/api/v1/login", data={"username": "new.user@example.com", "password": "password123"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "new.user@example.com"
    assert me["nickname"] == "새시민"
    assert [e["action"] for e in list_audit_entries(db, entity_type="auth")] == ["LOGIN_SUCCESS"]


def test_duplicate_registration_is_a_conflict(client, citizen):
    r = client.post(
        "/api/v1/register",
        json={"email": citizen.email, "password": "password123", "nickname": "중복"},
    )
    assert r.status_code == 409


def test_lockout_after_three_failures(client, citizen):
    for _ in range(3):
        r = client.post("/api/v1/login", data={"username": citizen.email, "password": "wrong-password"})
        assert r.status_code == 401

    r = client.post("/api/v1/login", data={"username": citizen.email, "password": "password123"})
    assert r.status_code == 429


def test_disabled_user_is_refused(client, db, citizen, headers_for):
    citizen.is_active = False
    db.commit()
    assert client.get("/api/v1/me", headers=headers_for(citizen)).status_code == 403


def test_bad_token(client):
    r = client.get("/api/v1/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
