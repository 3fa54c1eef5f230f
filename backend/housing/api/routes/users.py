from fastapi import APIRouter

from housing.api.deps import ClientsDep, CsrfToken, SessionId, Timeout
from housing.rpc.codec import Empty
from housing.rpc.messages import (
    PlacesResponse,
    SessionRequest,
    UpdateUserRequest,
    UserIdRequest,
)
from housing.schemas.user import OneUserResponse, UserOut, UsersResponse, UserUpdate

router = APIRouter()


@router.get("/users", response_model=UsersResponse)
async def get_all_users(clients: ClientsDep, timeout: Timeout):
    return await clients.auth.call("GetAllUsers", Empty(), timeout)


@router.get("/users/{user_id}", response_model=OneUserResponse)
async def get_user_by_id(user_id: str, clients: ClientsDep, timeout: Timeout):
    return await clients.auth.call(
        "GetUserById", UserIdRequest(user_id=user_id), timeout
    )


@router.get("/users/{user_id}/places", response_model=PlacesResponse)
async def get_user_places(user_id: str, clients: ClientsDep, timeout: Timeout):
    return await clients.ads.call(
        "GetUserPlaces", UserIdRequest(user_id=user_id), timeout
    )


@router.get("/user", response_model=UserOut)
async def get_current_user(clients: ClientsDep, timeout: Timeout, session_id: SessionId):
    result = await clients.auth.call(
        "GetCurrentUser", SessionRequest(session_id=session_id), timeout
    )
    return result.user


@router.put("/user", response_model=UserOut)
async def update_current_user(
    update_data: UserUpdate,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = UpdateUserRequest(
        update=update_data, session_id=session_id, csrf_token=csrf_token
    )
    result = await clients.auth.call("UpdateUser", message, timeout)
    return result.user
