"""Cookie session storage.

A session id is 32 random bytes, base64 encoded, mapped to a small record
holding the user id, timestamps and free-form attributes. Two stores are
available: an in-memory map for single-process runs and tests, and Redis for
everything else. Both expire records after the configured number of days.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol

import redis.asyncio as aioredis

from housing.core.errors import NoActiveSession, SessionExpired
from housing.core.security import new_session_id

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    user_id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    attributes: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(
            {
                "user_id": str(self.user_id),
                "created_at": self.created_at.isoformat(),
                "expires_at": self.expires_at.isoformat(),
                "attributes": self.attributes,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "SessionRecord":
        data = json.loads(raw)
        return cls(
            user_id=uuid.UUID(data["user_id"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            attributes=dict(data.get("attributes") or {}),
        )


class SessionStore(Protocol):
    async def save(self, session_id: str, record: SessionRecord, ttl: timedelta) -> None: ...

    async def load(self, session_id: str) -> SessionRecord | None: ...

    async def delete(self, session_id: str) -> bool: ...


class MemorySessionStore:
    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}
        self._lock = asyncio.Lock()

    async def save(self, session_id: str, record: SessionRecord, ttl: timedelta) -> None:
        now = datetime.now(timezone.utc)
        async with self._lock:
            expired = [
                sid for sid, stored in self._records.items() if stored.expires_at <= now
            ]
            for sid in expired:
                del self._records[sid]
            self._records[session_id] = record

    async def load(self, session_id: str) -> SessionRecord | None:
        async with self._lock:
            return self._records.get(session_id)

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._records.pop(session_id, None) is not None


class RedisSessionStore:
    prefix = "session:"

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisSessionStore":
        return cls(aioredis.from_url(url, encoding="utf-8", decode_responses=True))

    async def save(self, session_id: str, record: SessionRecord, ttl: timedelta) -> None:
        await self._client.set(
            self.prefix + session_id,
            record.to_json(),
            ex=max(int(ttl.total_seconds()), 1),
        )

    async def load(self, session_id: str) -> SessionRecord | None:
        raw = await self._client.get(self.prefix + session_id)
        if raw is None:
            return None
        return SessionRecord.from_json(raw)

    async def delete(self, session_id: str) -> bool:
        return bool(await self._client.delete(self.prefix + session_id))

    async def close(self) -> None:
        await self._client.aclose()


class SessionService:
    def __init__(self, store: SessionStore, expire_days: int) -> None:
        self._store = store
        self._ttl = timedelta(days=expire_days)

    async def create(
        self, user_id: uuid.UUID, attributes: dict[str, str] | None = None
    ) -> str:
        now = datetime.now(timezone.utc)
        session_id = new_session_id()
        record = SessionRecord(
            user_id=user_id,
            created_at=now,
            expires_at=now + self._ttl,
            attributes=dict(attributes or {}),
        )
        await self._store.save(session_id, record, self._ttl)
        logger.info("session created for user %s", user_id)
        return session_id

    async def _record(self, session_id: str | None) -> SessionRecord:
        if not session_id:
            raise NoActiveSession()
        record = await self._store.load(session_id)
        if record is None:
            raise NoActiveSession()
        if record.expires_at <= datetime.now(timezone.utc):
            await self._store.delete(session_id)
            raise SessionExpired()
        return record

    async def lookup(self, session_id: str | None) -> uuid.UUID:
        record = await self._record(session_id)
        return record.user_id

    async def data(self, session_id: str | None) -> dict[str, str]:
        record = await self._record(session_id)
        return {"user_id": str(record.user_id), **record.attributes}

    async def invalidate(self, session_id: str | None) -> bool:
        if not session_id:
            return False
        deleted = await self._store.delete(session_id)
        if deleted:
            logger.info("session invalidated")
        return deleted
