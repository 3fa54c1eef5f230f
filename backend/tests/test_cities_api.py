async def test_list_cities(client):
    response = await client.get("/api/cities")
    assert response.status_code == 200
    cities = response.json()["cities"]
    assert [c["enTitle"] for c in cities] == ["Moscow", "Kazan"]
    assert cities[0]["title"] == "Москва"


async def test_get_one_city(client):
    response = await client.get("/api/cities/Moscow")
    assert response.status_code == 200
    assert response.json()["city"]["description"] == "Capital"


async def test_unknown_city(client):
    response = await client.get("/api/cities/Atlantis")
    assert response.status_code == 404
    assert response.json() == {"error": "city not found"}


async def test_city_name_with_invalid_characters(client):
    response = await client.get("/api/cities/Mos$cow")
    assert response.status_code == 400
    assert response.json() == {"error": "URL contains invalid characters"}


async def test_cors_preflight(client):
    response = await client.options(
        "/api/cities",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "X-CSRF-Token",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"
