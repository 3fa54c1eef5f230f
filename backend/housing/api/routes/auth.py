from fastapi import APIRouter, Response, status

from housing.api.deps import CSRF_HEADER, ClientsDep, SessionId, SettingsDep, Timeout
from housing.core.config import Settings
from housing.rpc.messages import SessionRequest, StatusResponse
from housing.schemas.session import CsrfTokenResponse, SessionData
from housing.schemas.user import AuthResponse, AuthResult, UserLogin, UserRegister

router = APIRouter()


def _start_session(response: Response, settings: Settings, result: AuthResult) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.session_id,
        max_age=settings.session_expire_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    response.headers[CSRF_HEADER] = result.csrf_token


@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    user_in: UserRegister,
    response: Response,
    clients: ClientsDep,
    settings: SettingsDep,
    timeout: Timeout,
):
    result = await clients.auth.call("Register", user_in, timeout)
    _start_session(response, settings, result)
    return result


@router.post("/auth/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    clients: ClientsDep,
    settings: SettingsDep,
    timeout: Timeout,
):
    result = await clients.auth.call("Login", credentials, timeout)
    _start_session(response, settings, result)
    return result


@router.delete("/auth/logout", response_model=StatusResponse)
async def logout(
    response: Response,
    clients: ClientsDep,
    settings: SettingsDep,
    timeout: Timeout,
    session_id: SessionId,
):
    result = await clients.auth.call(
        "Logout", SessionRequest(session_id=session_id), timeout
    )
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return result


@router.get("/csrf/refresh", response_model=CsrfTokenResponse)
async def refresh_csrf_token(
    response: Response, clients: ClientsDep, timeout: Timeout, session_id: SessionId
):
    result = await clients.auth.call(
        "RefreshCsrfToken", SessionRequest(session_id=session_id), timeout
    )
    response.headers[CSRF_HEADER] = result.csrf_token
    return result


@router.get("/getSessionData", response_model=SessionData)
async def get_session_data(clients: ClientsDep, timeout: Timeout, session_id: SessionId):
    return await clients.auth.call(
        "GetSessionData", SessionRequest(session_id=session_id), timeout
    )
