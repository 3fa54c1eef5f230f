import io
import logging
from typing import Protocol

from fastapi.concurrency import run_in_threadpool
from minio import Minio
from minio.error import S3Error

from housing.core.config import Settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/images/"

CONTENT_TYPES = {"jpg": "image/jpeg", "png": "image/png"}


def public_path(key: str) -> str:
    return PUBLIC_PREFIX + key


def object_key(path: str) -> str:
    return path.removeprefix(PUBLIC_PREFIX)


class ObjectStorage(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> str: ...

    async def delete(self, path: str) -> None: ...


class MinioStorage:
    def __init__(self, client: Minio, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "MinioStorage":
        client = Minio(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key.get_secret_value(),
            secure=settings.minio_secure,
        )
        return cls(client, settings.minio_bucket)

    async def ensure_bucket(self) -> None:
        exists = await run_in_threadpool(
            self._client.bucket_exists, bucket_name=self._bucket
        )
        if not exists:
            await run_in_threadpool(self._client.make_bucket, bucket_name=self._bucket)
            logger.info("created bucket %s", self._bucket)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        await run_in_threadpool(
            self._client.put_object,
            bucket_name=self._bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        return public_path(key)

    async def delete(self, path: str) -> None:
        try:
            await run_in_threadpool(
                self._client.remove_object,
                bucket_name=self._bucket,
                object_name=object_key(path),
            )
        except S3Error as e:
            if e.code != "NoSuchKey":
                raise


async def delete_quietly(storage: ObjectStorage, paths: list[str]) -> None:
    for path in paths:
        try:
            await storage.delete(path)
        except Exception:
            logger.exception("failed to delete object %s", path)
