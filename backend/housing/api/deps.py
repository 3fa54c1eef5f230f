import time
from typing import Annotated

from fastapi import Depends, Request

from housing.core.config import Settings
from housing.core.errors import DeadlineExceeded
from housing.wiring import Clients

CSRF_HEADER = "X-CSRF-Token"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clients(request: Request) -> Clients:
    return request.app.state.clients


def remaining_timeout(request: Request) -> float:
    remaining = request.state.deadline - time.monotonic()
    if remaining <= 0:
        raise DeadlineExceeded()
    return remaining


def get_session_id(
    request: Request, settings: Annotated[Settings, Depends(get_settings)]
) -> str:
    return request.cookies.get(settings.session_cookie_name, "")


def get_csrf_token(request: Request) -> str:
    return request.headers.get(CSRF_HEADER, "")


SettingsDep = Annotated[Settings, Depends(get_settings)]
ClientsDep = Annotated[Clients, Depends(get_clients)]
Timeout = Annotated[float, Depends(remaining_timeout)]
SessionId = Annotated[str, Depends(get_session_id)]
CsrfToken = Annotated[str, Depends(get_csrf_token)]
