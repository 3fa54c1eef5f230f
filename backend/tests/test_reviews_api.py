from conftest import create_place, register, register_host


async def write_review(client, login, host_id, rating, title="Great stay", text="Clean and quiet."):
    return await client.post(
        "/api/reviews",
        json={"hostId": host_id, "title": title, "text": text, "rating": rating},
        headers=login.headers,
    )


async def host_score(client, host_id) -> float:
    response = await client.get(f"/api/users/{host_id}")
    return response.json()["user"]["score"]


async def test_reviews_keep_host_score_current(client):
    host = await register_host(client, "hostuser")
    first = await register(client, "guestone")
    second = await register(client, "guesttwo")
    third = await register(client, "guestthree")

    response = await write_review(client, first, host.user_id, 5)
    assert response.status_code == 201
    review = response.json()["review"]
    assert review["hostId"] == host.user_id
    assert review["userId"] == first.user_id
    assert review["rating"] == 5
    assert await host_score(client, host.user_id) == 5.0

    await write_review(client, second, host.user_id, 4)
    await write_review(client, third, host.user_id, 4)
    assert await host_score(client, host.user_id) == 4.3

    response = await client.put(
        f"/api/reviews/{host.user_id}",
        json={"title": "Changed my mind", "text": "Noisy at night.", "rating": 1},
        headers=first.headers,
    )
    assert response.status_code == 200
    assert response.json() == {"response": "Successfully updated review"}
    assert await host_score(client, host.user_id) == 3.0

    response = await client.delete(f"/api/reviews/{host.user_id}", headers=second.headers)
    assert response.status_code == 200
    assert await host_score(client, host.user_id) == 2.5

    response = await client.get(f"/api/reviews/{host.user_id}")
    assert response.status_code == 200
    reviews = response.json()["reviews"]
    assert {r["userName"] for r in reviews} == {None}
    assert sorted(r["rating"] for r in reviews) == [1, 4]
    assert all(r["userAvatar"] for r in reviews)

    for login in (first, third):
        await client.delete(f"/api/reviews/{host.user_id}", headers=login.headers)
    assert await host_score(client, host.user_id) == 0.0
    response = await client.get(f"/api/reviews/{host.user_id}")
    assert response.json() == {"reviews": []}


async def test_review_rules(client):
    host = await register_host(client, "hostuser")
    guest = await register(client, "guestone")

    response = await write_review(client, host, host.user_id, 5)
    assert response.status_code == 409
    assert response.json() == {"error": "host and user are the same"}

    response = await write_review(client, guest, host.user_id, 6)
    assert response.status_code == 400
    assert response.json() == {"error": "score out of range"}

    response = await write_review(client, guest, host.user_id, 4, title="Bad # title")
    assert response.status_code == 400
    assert response.json() == {"error": "Input contains invalid characters"}

    response = await write_review(client, guest, host.user_id, 4, title="a" * 101)
    assert response.status_code == 400
    assert response.json() == {"error": "Input exceeds character limit"}

    response = await write_review(
        client, guest, "5b0e7c0e-4c7d-4d0a-9b8e-000000000000", 4
    )
    assert response.status_code == 404
    assert response.json() == {"error": "user not found"}

    assert (await write_review(client, guest, host.user_id, 4)).status_code == 201
    response = await write_review(client, guest, host.user_id, 3)
    assert response.status_code == 409
    assert response.json() == {"error": "review already exist"}


async def test_review_markup_is_stripped(client):
    host = await register_host(client, "hostuser")
    guest = await register(client, "guestone")
    response = await write_review(
        client, guest, host.user_id, 4, title="<b>Lovely</b>", text="<i>Would return</i>"
    )
    assert response.status_code == 201
    review = response.json()["review"]
    assert review["title"] == "Lovely"
    assert review["text"] == "Would return"


async def test_review_changes_require_session_and_csrf(client):
    host = await register_host(client, "hostuser")
    guest = await register(client, "guestone")

    response = await write_review(client, guest, host.user_id, 4)
    assert response.status_code == 201

    response = await client.post(
        "/api/reviews",
        json={"hostId": host.user_id, "title": "x", "text": "y", "rating": 4},
        headers=guest.cookie_only,
    )
    assert response.status_code == 401
    assert response.json() == {"error": "Missing X-CSRF-Token header"}

    response = await client.delete(f"/api/reviews/{host.user_id}")
    assert response.status_code == 401
    assert response.json() == {"error": "no active session"}

    other = await register(client, "guesttwo")
    response = await client.put(
        f"/api/reviews/{host.user_id}",
        json={"title": "x", "text": "y", "rating": 2},
        headers=other.headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "review not found"}


async def test_reviews_of_unknown_user(client):
    response = await client.get("/api/reviews/not-a-uuid")
    assert response.status_code == 404
    assert response.json() == {"error": "user not found"}


async def test_rating_filter_follows_reviews(client):
    host = await register_host(client, "hostuser")
    guest = await register(client, "guestone")
    place = await create_place(client, host)

    response = await client.get("/api/ads", params={"rating": "4"})
    assert response.json()["places"] == []

    await write_review(client, guest, host.user_id, 5)
    response = await client.get("/api/ads", params={"rating": "4"})
    places = response.json()["places"]
    assert [p["id"] for p in places] == [place["id"]]
    assert places[0]["author"]["rating"] == 5.0
