import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from housing.api.errors import register_exception_handlers
from housing.api.middleware import request_context
from housing.api.routes import ads, auth, cities, reviews, users
from housing.core.config import Settings, get_settings
from housing.core.logger import setup_logging
from housing.db.session import create_tables
from housing.services.priority import start_priority_worker, stop_priority_worker
from housing.wiring import (
    Clients,
    build_backend,
    build_grpc_clients,
    build_inprocess_clients,
)

logger = logging.getLogger(__name__)

root = "/api"
ads_prefix = "/ads"
cities_prefix = "/cities"
reviews_prefix = "/reviews"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if getattr(app.state, "clients", None) is not None:
        yield
        return

    backend = None
    worker = None
    if settings.rpc_mode == "inprocess":
        backend = build_backend(settings)
        await create_tables(backend.engine)
        await backend.storage.ensure_bucket()
        app.state.clients = build_inprocess_clients(backend)
        worker = start_priority_worker(
            backend.ads, settings.priority_reset_interval_seconds
        )
        logger.info("gateway running with in-process services")
    else:
        app.state.clients = build_grpc_clients(settings)
        logger.info("gateway connected to rpc services")
    try:
        yield
    finally:
        if worker is not None:
            await stop_priority_worker(worker)
        await app.state.clients.close()
        if backend is not None:
            await backend.close()
        logger.info("gateway stopped")


def create_app(settings: Settings | None = None, clients: Clients | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Housing", lifespan=lifespan)
    app.state.settings = settings
    app.state.clients = clients

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Set-Cookie", "X-CSRF-Token"],
        expose_headers=["X-CSRF-Token", "X-Request-ID"],
    )
    app.middleware("http")(request_context)
    register_exception_handlers(app)

    app.include_router(ads.router, prefix=f"{root}{ads_prefix}", tags=["Ads"])
    app.include_router(auth.router, prefix=root, tags=["Auth"])
    app.include_router(users.router, prefix=root, tags=["Users"])
    app.include_router(reviews.router, prefix=f"{root}{reviews_prefix}", tags=["Reviews"])
    app.include_router(cities.router, prefix=f"{root}{cities_prefix}", tags=["Cities"])
    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.gateway_host,
        port=settings.gateway_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
