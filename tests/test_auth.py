# tests/test_auth.py
# PURPOSE: registration, login and their rate limits.

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"


def _register(client, email, **extra):
    payload = {"email": email, "password": "secret123", "firstName": "Reg", "lastName": "User", **extra}
    return client.post(REGISTER, json=payload)


def _login(client, email, password="secret123"):
    return client.post(
        LOGIN,
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


def test_first_user_of_new_org_is_admin(client):
    r = _register(client, "founder@example.com", organizationName="Startup Inc")
    assert r.status_code == 201
    body = r.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["role"] == "Admin"
    assert body["user"]["organizationName"] == "Startup Inc"

    headers = {"Authorization": f"Bearer {body['accessToken']}"}
    states = client.get("/api/v1/todostates", headers=headers).json()
    assert [s["name"] for s in states] == ["draft", "active", "in-progress", "done"]

    org_id = body["user"]["organizationId"]
    r = _register(client, "second@example.com", organizationId=org_id)
    assert r.json()["user"]["role"] == "User"
    assert r.json()["user"]["organizationId"] == org_id


def test_register_without_org_joins_default(client):
    r = _register(client, "Loner@Example.com")
    assert r.status_code == 201
    user = r.json()["user"]
    assert user["email"] == "loner@example.com"
    assert user["organizationName"] == "Default Organization"


def test_register_rejects_duplicates_and_unknown_org(client):
    assert _register(client, "dup@example.com").status_code == 201
    r = _register(client, "DUP@example.com")
    assert r.status_code == 409
    assert _register(client, "lost@example.com", organizationId=999).status_code == 400


def test_login(client, world):
    org_id = world.org("Acme")
    member = world.member(org_id, "User", email="member@example.com")

    r = _login(client, "member@example.com")
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["id"] == member.id
    assert body["user"]["lastLoginAt"] is not None

    me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "member@example.com"

    assert _login(client, "member@example.com", "wrong").status_code == 401
    assert _login(client, "nobody@example.com").status_code == 401


def test_inactive_user_cannot_login(client, world):
    world.member(world.org("Acme"), "User", email="gone@example.com", is_active=False)
    assert _login(client, "gone@example.com").status_code == 401


def test_login_rate_limit(client, world):
    world.member(world.org("Acme"), "User", email="rl@example.com")

    # 5 attempts within the minute are allowed
    for _ in range(5):
        assert _login(client, "rl@example.com", "wrong").status_code == 401

    # 6th attempt within the same minute should be rate limited
    assert _login(client, "rl@example.com", "wrong").status_code == 429


def test_register_rate_limit(client):
    for i in range(3):
        assert _register(client, f"rate{i}@example.com").status_code == 201

    # Fourth within the same minute should hit the limiter
    assert _register(client, "rate3@example.com").status_code == 429
