"""Builds the collaborators shared by the RPC servers and the gateway."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from housing.core.config import Settings
from housing.core.security import CsrfTokens
from housing.db.session import build_engine, build_sessionmaker
from housing.rpc.clients import GrpcTransport, InProcessTransport, RpcClient
from housing.rpc.messages import (
    ADS_CONTRACT,
    ADS_SERVICE,
    AUTH_CONTRACT,
    AUTH_SERVICE,
    CITY_CONTRACT,
    CITY_SERVICE,
)
from housing.rpc.servicers import AdsServicer, AuthServicer, CityServicer
from housing.services.ads import AdService
from housing.services.auth import AuthService
from housing.services.cities import CityService
from housing.services.reviews import ReviewService
from housing.services.sessions import (
    MemorySessionStore,
    RedisSessionStore,
    SessionService,
    SessionStore,
)
from housing.services.storage import MinioStorage, ObjectStorage


@dataclass
class Backend:
    engine: AsyncEngine
    sessions: async_sessionmaker[AsyncSession]
    session_store: SessionStore
    session_service: SessionService
    csrf: CsrfTokens
    storage: ObjectStorage
    ads: AdService
    auth: AuthService
    cities: CityService
    reviews: ReviewService

    def servicer(self, service: str) -> object:
        if service == ADS_SERVICE:
            return AdsServicer(self.ads, self.session_service, self.csrf)
        if service == AUTH_SERVICE:
            return AuthServicer(self.auth, self.reviews)
        if service == CITY_SERVICE:
            return CityServicer(self.cities)
        raise ValueError(f"unknown service {service}")

    async def close(self) -> None:
        if isinstance(self.session_store, RedisSessionStore):
            await self.session_store.close()
        await self.engine.dispose()


def build_session_store(settings: Settings) -> SessionStore:
    if settings.redis_url:
        return RedisSessionStore.from_url(settings.redis_url)
    return MemorySessionStore()


def build_backend(
    settings: Settings,
    storage: ObjectStorage | None = None,
    session_store: SessionStore | None = None,
) -> Backend:
    engine = build_engine(settings.database_url)
    sessions = build_sessionmaker(engine)
    session_store = session_store or build_session_store(settings)
    session_service = SessionService(session_store, settings.session_expire_days)
    csrf = CsrfTokens(settings)
    storage = storage or MinioStorage.from_settings(settings)
    return Backend(
        engine=engine,
        sessions=sessions,
        session_store=session_store,
        session_service=session_service,
        csrf=csrf,
        storage=storage,
        ads=AdService(sessions, storage, settings),
        auth=AuthService(sessions, session_service, csrf),
        cities=CityService(sessions),
        reviews=ReviewService(sessions),
    )


@dataclass
class Clients:
    ads: RpcClient
    auth: RpcClient
    city: RpcClient

    async def close(self) -> None:
        for client in (self.ads, self.auth, self.city):
            await client.close()


def build_grpc_clients(settings: Settings) -> Clients:
    return Clients(
        ads=RpcClient(
            GrpcTransport.connect(ADS_SERVICE, settings.ads_rpc_addr), ADS_CONTRACT
        ),
        auth=RpcClient(
            GrpcTransport.connect(AUTH_SERVICE, settings.auth_rpc_addr), AUTH_CONTRACT
        ),
        city=RpcClient(
            GrpcTransport.connect(CITY_SERVICE, settings.city_rpc_addr), CITY_CONTRACT
        ),
    )


def build_inprocess_clients(backend: Backend) -> Clients:
    return Clients(
        ads=RpcClient(
            InProcessTransport(backend.servicer(ADS_SERVICE)), ADS_CONTRACT
        ),
        auth=RpcClient(
            InProcessTransport(backend.servicer(AUTH_SERVICE)), AUTH_CONTRACT
        ),
        city=RpcClient(
            InProcessTransport(backend.servicer(CITY_SERVICE)), CITY_CONTRACT
        ),
    )
