import argparse
import asyncio
import logging
import sys
import time

import grpc

from housing.core.config import Settings, get_settings
from housing.core.errors import AppError, DeadlineExceeded, IncorrectDataForms
from housing.core.logger import request_id_var, setup_logging
from housing.db.session import create_tables
from housing.rpc.clients import WRONG_FIELDS_KEY
from housing.rpc.codec import decoder, encode
from housing.rpc.messages import ADS_SERVICE, AUTH_SERVICE, CITY_SERVICE, CONTRACTS
from housing.services.priority import start_priority_worker, stop_priority_worker
from housing.wiring import build_backend

logger = logging.getLogger(__name__)

SERVICE_ALIASES = {"ads": ADS_SERVICE, "auth": AUTH_SERVICE, "city": CITY_SERVICE}


def wrap_handler(method: str, handler):
    async def call(request, context: grpc.aio.ServicerContext):
        metadata = {key: value for key, value in context.invocation_metadata() or ()}
        token = request_id_var.set(metadata.get("x-request-id", "-"))
        start = time.perf_counter()
        try:
            async with asyncio.timeout(context.time_remaining()):
                response = await handler(request)
            logger.info("%s ok in %.3fs", method, time.perf_counter() - start)
            return response
        except AppError as e:
            logger.info("%s failed: %s", method, e.message)
            trailing = ()
            if isinstance(e, IncorrectDataForms):
                trailing = ((WRONG_FIELDS_KEY, ",".join(e.wrong_fields)),)
            await context.abort(e.rpc_code, e.message, trailing_metadata=trailing)
        except TimeoutError:
            logger.warning("%s exceeded its deadline", method)
            await context.abort(
                DeadlineExceeded.rpc_code, DeadlineExceeded.message
            )
        except Exception:
            logger.exception("%s failed", method)
            await context.abort(grpc.StatusCode.INTERNAL, AppError.message)
        finally:
            request_id_var.reset(token)

    return call


def generic_handler(service: str, servicer: object) -> grpc.GenericRpcHandler:
    handlers = {
        method: grpc.unary_unary_rpc_method_handler(
            wrap_handler(method, getattr(servicer, method)),
            request_deserializer=decoder(request_type),
            response_serializer=encode,
        )
        for method, (request_type, _) in CONTRACTS[service].items()
    }
    return grpc.method_handlers_generic_handler(service, handlers)


def listen_addr(settings: Settings, service: str) -> str:
    addr = {
        ADS_SERVICE: settings.ads_rpc_addr,
        AUTH_SERVICE: settings.auth_rpc_addr,
        CITY_SERVICE: settings.city_rpc_addr,
    }[service]
    return "[::]:" + addr.rsplit(":", 1)[-1]


async def serve(service: str, settings: Settings) -> None:
    backend = build_backend(settings)
    await create_tables(backend.engine)
    if service == ADS_SERVICE:
        await backend.storage.ensure_bucket()

    server = grpc.aio.server()
    server.add_generic_rpc_handlers((generic_handler(service, backend.servicer(service)),))
    addr = listen_addr(settings, service)
    server.add_insecure_port(addr)
    await server.start()
    logger.info("%s listening on %s", service, addr)

    worker = None
    if service == ADS_SERVICE:
        worker = start_priority_worker(
            backend.ads, settings.priority_reset_interval_seconds
        )
    try:
        await server.wait_for_termination()
    finally:
        if worker is not None:
            await stop_priority_worker(worker)
        await server.stop(5)
        await backend.close()
        logger.info("%s stopped", service)


def run(service: str) -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    if not settings.redis_url:
        logger.error("REDIS_URL must be set when services run as separate processes")
        sys.exit(1)
    try:
        asyncio.run(serve(service, settings))
    except KeyboardInterrupt:
        logger.info("interrupted")
    except RuntimeError:
        logger.exception("%s failed to start", service)
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a housing backend service.")
    parser.add_argument("service", choices=sorted(SERVICE_ALIASES))
    args = parser.parse_args()
    run(SERVICE_ALIASES[args.service])


def ads_main() -> None:
    run(ADS_SERVICE)


def auth_main() -> None:
    run(AUTH_SERVICE)


def city_main() -> None:
    run(CITY_SERVICE)


if __name__ == "__main__":
    main()
