import asyncio

import grpc
import pytest

from housing.core.errors import (
    AdNotFound,
    AppError,
    DeadlineExceeded,
    IncorrectDataForms,
    NotOwner,
    error_from_message,
)
from housing.core.logger import get_request_id
from housing.rpc.clients import InProcessTransport, error_from_rpc
from housing.rpc import server
from housing.rpc.messages import AUTH_SERVICE, AdRequest, StatusResponse
from housing.rpc.server import wrap_handler


class FakeContext:
    def __init__(self, remaining=None):
        self.remaining = remaining
        self.aborted = None

    def invocation_metadata(self):
        return (("x-request-id", "req-42"),)

    def time_remaining(self):
        return self.remaining

    async def abort(self, code, details="", trailing_metadata=()):
        self.aborted = (code, details, trailing_metadata)
        raise grpc.aio.AbortError()


def test_error_from_message_rebuilds_class():
    assert isinstance(error_from_message("ad not found"), AdNotFound)
    assert isinstance(error_from_message("not owner of ad"), NotOwner)
    unknown = error_from_message("something odd")
    assert type(unknown) is AppError
    assert unknown.message == "something odd"


def test_incorrect_data_forms_payload():
    error = error_from_message("Incorrect data forms", ["username", "email"])
    assert isinstance(error, IncorrectDataForms)
    assert error.to_dict() == {
        "error": "Incorrect data forms",
        "wrongFields": ["username", "email"],
    }


def test_error_from_rpc_reads_wrong_fields():
    error = grpc.aio.AioRpcError(
        grpc.StatusCode.INVALID_ARGUMENT,
        grpc.aio.Metadata(),
        grpc.aio.Metadata(("wrong-fields", "password")),
        details="Incorrect data forms",
    )
    rebuilt = error_from_rpc(error)
    assert isinstance(rebuilt, IncorrectDataForms)
    assert rebuilt.wrong_fields == ["password"]


def test_error_from_rpc_deadline():
    error = grpc.aio.AioRpcError(
        grpc.StatusCode.DEADLINE_EXCEEDED,
        grpc.aio.Metadata(),
        grpc.aio.Metadata(),
        details="Deadline Exceeded",
    )
    assert isinstance(error_from_rpc(error), DeadlineExceeded)


async def test_handler_propagates_request_id():
    seen = {}

    async def handler(request):
        seen["request_id"] = get_request_id()
        return StatusResponse()

    response = await wrap_handler("Ping", handler)(AdRequest(ad_id="x"), FakeContext())
    assert response.response == "ok"
    assert seen["request_id"] == "req-42"


async def test_handler_aborts_with_error_status():
    async def handler(request):
        raise IncorrectDataForms(["username"])

    context = FakeContext()
    with pytest.raises(grpc.aio.AbortError):
        await wrap_handler("Register", handler)(AdRequest(ad_id="x"), context)
    code, details, trailing = context.aborted
    assert code == grpc.StatusCode.INVALID_ARGUMENT
    assert details == "Incorrect data forms"
    assert trailing == (("wrong-fields", "username"),)


async def test_handler_aborts_on_deadline():
    async def handler(request):
        await asyncio.sleep(1)

    context = FakeContext(remaining=0.01)
    with pytest.raises(grpc.aio.AbortError):
        await wrap_handler("Slow", handler)(AdRequest(ad_id="x"), context)
    assert context.aborted[0] == grpc.StatusCode.DEADLINE_EXCEEDED


async def test_handler_hides_internal_errors():
    async def handler(request):
        raise RuntimeError("database exploded")

    context = FakeContext()
    with pytest.raises(grpc.aio.AbortError):
        await wrap_handler("Boom", handler)(AdRequest(ad_id="x"), context)
    assert context.aborted[:2] == (grpc.StatusCode.INTERNAL, "internal server error")


class SlowServicer:
    async def Wait(self, request):
        await asyncio.sleep(1)
        return StatusResponse()

    async def Fail(self, request):
        raise AdNotFound()


async def test_inprocess_transport_deadline_and_errors():
    transport = InProcessTransport(SlowServicer())
    with pytest.raises(DeadlineExceeded):
        await transport.call("Wait", AdRequest(ad_id="x"), StatusResponse, 0.01)
    with pytest.raises(AdNotFound):
        await transport.call("Fail", AdRequest(ad_id="x"), StatusResponse, 1)


def test_standalone_service_requires_redis(settings, monkeypatch):
    async def serve(service, settings):
        raise AssertionError("service must not start")

    monkeypatch.setattr(server, "get_settings", lambda: settings)
    monkeypatch.setattr(server, "setup_logging", lambda level: None)
    monkeypatch.setattr(server, "serve", serve)
    with pytest.raises(SystemExit) as exc:
        server.run(AUTH_SERVICE)
    assert exc.value.code == 1
