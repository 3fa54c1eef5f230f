import io
import json
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from housing.core.config import Settings
from housing.crud import city as city_crud
from housing.db.session import create_tables
from housing.main import create_app
from housing.services.sessions import MemorySessionStore
from housing.services.storage import object_key, public_path
from housing.wiring import build_backend, build_inprocess_clients

PASSWORD = "password1"


class MemoryStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    async def ensure_bucket(self) -> None:
        pass

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = data
        return public_path(key)

    async def delete(self, path: str) -> None:
        self.objects.pop(object_key(path), None)

    def has(self, path: str) -> bool:
        return object_key(path) in self.objects


@dataclass
class Login:
    session_id: str
    csrf_token: str
    user_id: str

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Cookie": f"session_id={self.session_id}",
            "X-CSRF-Token": self.csrf_token,
        }

    @property
    def cookie_only(self) -> dict[str, str]:
        return {"Cookie": f"session_id={self.session_id}"}


def make_image(color: str = "red", size: tuple[int, int] = (16, 16), fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def place_metadata(**overrides) -> str:
    metadata = {
        "cityName": "Москва",
        "address": "Tverskaya 1",
        "description": "Cozy flat near the center",
        "roomsNumber": 2,
        "dateFrom": "2025-06-01",
        "dateTo": "2025-06-30",
    }
    metadata.update(overrides)
    return json.dumps(metadata)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key-with-enough-length-for-hs256",
        redis_url=None,
        rpc_mode="inprocess",
        cors_origins="http://localhost:3000",
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
async def backend(settings, storage):
    backend = build_backend(
        settings, storage=storage, session_store=MemorySessionStore()
    )
    await create_tables(backend.engine)
    async with backend.sessions() as db:
        await city_crud.upsert_city(
            db,
            title="Москва",
            en_title="Moscow",
            description="Capital",
            image="/images/moscow.png",
        )
        await city_crud.upsert_city(
            db,
            title="Казань",
            en_title="Kazan",
            description="",
            image="",
        )
        await db.commit()
    yield backend
    await backend.close()


@pytest.fixture
async def client(settings, backend):
    app = create_app(settings, clients=build_inprocess_clients(backend))
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as ac:
        yield ac


async def register(client: AsyncClient, username: str, password: str = PASSWORD) -> Login:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
        },
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    body = response.json()
    return Login(
        session_id=body["session_id"],
        csrf_token=response.headers["X-CSRF-Token"],
        user_id=body["user"]["id"],
    )


async def register_host(client: AsyncClient, username: str) -> Login:
    login = await register(client, username)
    response = await client.put("/api/user", json={"isHost": True}, headers=login.headers)
    assert response.status_code == 200, response.text
    return login


async def create_place(client: AsyncClient, login: Login, images=None, **metadata) -> dict:
    images = images if images is not None else [make_image("red"), make_image("blue")]
    response = await client.post(
        "/api/ads",
        data={"metadata": place_metadata(**metadata)},
        files=[("images", (f"{i}.jpg", data, "image/jpeg")) for i, data in enumerate(images)],
        headers=login.headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["place"]
