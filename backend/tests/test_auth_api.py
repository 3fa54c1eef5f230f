from conftest import PASSWORD, register


async def test_register_creates_session(client):
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "newuser",
            "email": "newuser@example.com",
            "password": "password",
            "name": "aboba123",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["session_id"]
    assert body["user"]["username"] == "newuser"
    assert response.cookies.get("session_id") == body["session_id"]
    assert response.headers["X-CSRF-Token"]
    assert "httponly" in response.headers["set-cookie"].lower()
    assert "samesite=strict" in response.headers["set-cookie"].lower()


async def test_register_duplicate_username(client):
    await register(client, "newuser")
    response = await client.post(
        "/api/auth/register",
        json={"username": "newuser", "email": "other@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409
    assert response.json() == {"error": "User already exists"}


async def test_register_reports_wrong_fields(client):
    response = await client.post(
        "/api/auth/register",
        json={"username": "ab", "email": "nope", "password": PASSWORD},
    )
    assert response.status_code == 400
    assert response.json() == {
        "error": "Incorrect data forms",
        "wrongFields": ["username", "email"],
    }


async def test_register_missing_fields_are_wrong(client):
    response = await client.post("/api/auth/register", json={"username": "newuser"})
    assert response.status_code == 400
    assert response.json()["wrongFields"] == ["email", "password"]


async def test_register_malformed_json(client):
    response = await client.post(
        "/api/auth/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


async def test_login_wrong_password(client):
    await register(client, "existinguser", password="password")
    response = await client.post(
        "/api/auth/login", json={"username": "existinguser", "password": "wrong"}
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


async def test_login_unknown_user(client):
    response = await client.post(
        "/api/auth/login", json={"username": "ghostuser", "password": PASSWORD}
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


async def test_login_issues_new_session(client):
    first = await register(client, "existinguser")
    response = await client.post(
        "/api/auth/login", json={"username": "existinguser", "password": PASSWORD}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["session_id"] != first.session_id
    assert body["user"]["id"] == first.user_id
    assert response.headers["X-CSRF-Token"]


async def test_logout_without_cookie(client):
    response = await client.delete("/api/auth/logout")
    assert response.status_code == 400
    assert response.json() == {"error": "No such session"}


async def test_logout_ends_session(client):
    login = await register(client, "someuser")
    response = await client.delete("/api/auth/logout", headers=login.cookie_only)
    assert response.status_code == 200

    response = await client.get("/api/getSessionData", headers=login.cookie_only)
    assert response.status_code == 401
    assert response.json() == {"error": "no active session"}


async def test_session_data(client):
    login = await register(client, "someuser")
    response = await client.get("/api/getSessionData", headers=login.cookie_only)
    assert response.status_code == 200
    assert response.json() == {"id": login.user_id, "avatar": "/images/default.png"}


async def test_csrf_refresh(client):
    login = await register(client, "someuser")
    response = await client.get("/api/csrf/refresh", headers=login.cookie_only)
    assert response.status_code == 200
    token = response.json()["csrf_token"]
    assert token
    assert response.headers["X-CSRF-Token"] == token

    response = await client.get("/api/csrf/refresh")
    assert response.status_code == 401


async def test_users_listing_and_lookup(client):
    login = await register(client, "someuser")
    await register(client, "otheruser")

    response = await client.get("/api/users")
    assert response.status_code == 200
    assert {u["username"] for u in response.json()["users"]} == {"someuser", "otheruser"}

    response = await client.get(f"/api/users/{login.user_id}")
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "someuser"
    assert user["isHost"] is False
    assert "password" not in user and "passwordHash" not in user

    response = await client.get("/api/users/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404
    assert response.json() == {"error": "user not found"}


async def test_update_current_user(client):
    login = await register(client, "someuser")
    await register(client, "takenuser")

    response = await client.put(
        "/api/user",
        json={"name": "Some Person", "sex": "F", "guestCount": 12},
        headers=login.headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Some Person"

    response = await client.get("/api/user", headers=login.cookie_only)
    assert response.status_code == 200
    assert response.json()["guestCount"] == 12
    assert response.json()["sex"] == "F"

    response = await client.put(
        "/api/user", json={"username": "takenuser"}, headers=login.headers
    )
    assert response.status_code == 409

    response = await client.put(
        "/api/user", json={"sex": "X", "password": "no"}, headers=login.headers
    )
    assert response.status_code == 400
    assert response.json()["wrongFields"] == ["password", "sex"]


async def test_update_user_requires_csrf(client):
    login = await register(client, "someuser")
    response = await client.put(
        "/api/user", json={"name": "Some Person"}, headers=login.cookie_only
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Missing X-CSRF-Token header"}

    response = await client.get("/api/user", headers=login.cookie_only)
    assert response.json()["name"] is None


async def test_password_change_allows_login(client):
    login = await register(client, "someuser")
    response = await client.put(
        "/api/user", json={"password": "newpassword"}, headers=login.headers
    )
    assert response.status_code == 200
    response = await client.post(
        "/api/auth/login", json={"username": "someuser", "password": "newpassword"}
    )
    assert response.status_code == 200
