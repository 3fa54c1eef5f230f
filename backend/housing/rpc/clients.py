import asyncio
from typing import Protocol

import grpc
from pydantic import BaseModel

from housing.core.errors import AppError, DeadlineExceeded, error_from_message
from housing.core.logger import get_request_id
from housing.rpc.codec import decoder, encode

WRONG_FIELDS_KEY = "wrong-fields"


class Transport(Protocol):
    async def call(
        self,
        method: str,
        request: BaseModel,
        response_type: type[BaseModel],
        timeout: float | None,
    ) -> BaseModel: ...

    async def close(self) -> None: ...


def error_from_rpc(error: grpc.aio.AioRpcError) -> AppError:
    if error.code() == grpc.StatusCode.DEADLINE_EXCEEDED:
        return DeadlineExceeded()
    wrong_fields: list[str] = []
    for key, value in error.trailing_metadata() or ():
        if key == WRONG_FIELDS_KEY and value:
            wrong_fields = value.split(",")
    return error_from_message(error.details() or "", wrong_fields)


class GrpcTransport:
    def __init__(self, service: str, channel: grpc.aio.Channel) -> None:
        self._service = service
        self._channel = channel

    @classmethod
    def connect(cls, service: str, addr: str) -> "GrpcTransport":
        return cls(service, grpc.aio.insecure_channel(addr))

    async def call(self, method, request, response_type, timeout):
        stub = self._channel.unary_unary(
            f"/{self._service}/{method}",
            request_serializer=encode,
            response_deserializer=decoder(response_type),
        )
        try:
            return await stub(
                request,
                timeout=timeout,
                metadata=(("x-request-id", get_request_id()),),
            )
        except grpc.aio.AioRpcError as e:
            raise error_from_rpc(e) from e

    async def close(self) -> None:
        await self._channel.close()


class InProcessTransport:
    """Calls servicer methods directly, passing messages through the codec."""

    def __init__(self, servicer: object) -> None:
        self._servicer = servicer

    async def call(self, method, request, response_type, timeout):
        handler = getattr(self._servicer, method)
        request = type(request).model_validate_json(encode(request))
        try:
            async with asyncio.timeout(timeout):
                response = await handler(request)
        except TimeoutError:
            raise DeadlineExceeded()
        return response_type.model_validate_json(encode(response))

    async def close(self) -> None:
        pass


class RpcClient:
    def __init__(
        self, transport: Transport, contract: dict[str, tuple[type, type]]
    ) -> None:
        self._transport = transport
        self._contract = contract

    async def call(self, method: str, request: BaseModel, timeout: float | None = None):
        _, response_type = self._contract[method]
        return await self._transport.call(method, request, response_type, timeout)

    async def close(self) -> None:
        await self._transport.close()
