import uuid
from datetime import datetime, timedelta, timezone

import pytest

from housing.core.errors import NoActiveSession, SessionExpired
from housing.services.sessions import MemorySessionStore, SessionRecord, SessionService


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def service(store):
    return SessionService(store, expire_days=7)


async def test_create_and_lookup(service):
    user_id = uuid.uuid4()
    session_id = await service.create(user_id, {"avatar": "/images/a.png"})
    assert await service.lookup(session_id) == user_id
    data = await service.data(session_id)
    assert data == {"user_id": str(user_id), "avatar": "/images/a.png"}


async def test_lookup_unknown_session(service):
    with pytest.raises(NoActiveSession):
        await service.lookup("missing")
    with pytest.raises(NoActiveSession):
        await service.lookup("")


async def test_invalidate(service):
    session_id = await service.create(uuid.uuid4())
    assert await service.invalidate(session_id)
    assert not await service.invalidate(session_id)
    with pytest.raises(NoActiveSession):
        await service.lookup(session_id)


async def test_expired_session_is_dropped(service, store):
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    record = SessionRecord(
        user_id=uuid.uuid4(), created_at=past - timedelta(days=7), expires_at=past
    )
    await store.save("old", record, timedelta(days=7))
    with pytest.raises(SessionExpired):
        await service.lookup("old")
    assert await store.load("old") is None


def test_record_json_roundtrip():
    now = datetime.now(timezone.utc)
    record = SessionRecord(
        user_id=uuid.uuid4(),
        created_at=now,
        expires_at=now + timedelta(days=1),
        attributes={"k": "v"},
    )
    assert SessionRecord.from_json(record.to_json()) == record


async def test_save_purges_abandoned_sessions(service, store):
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    record = SessionRecord(
        user_id=uuid.uuid4(), created_at=past - timedelta(days=7), expires_at=past
    )
    await store.save("abandoned", record, timedelta(days=7))
    session_id = await service.create(uuid.uuid4())
    assert await store.load("abandoned") is None
    assert await store.load(session_id) is not None
