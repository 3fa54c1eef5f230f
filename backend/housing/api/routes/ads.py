from fastapi import APIRouter, Query, Request

from housing.api.deps import ClientsDep, CsrfToken, SessionId, SettingsDep, Timeout
from housing.api.forms import read_place_form
from housing.core.errors import NoImages
from housing.rpc.messages import (
    AdRequest,
    CityPlacesRequest,
    CreatePlaceRequest,
    DeleteImageRequest,
    PlaceResponse,
    PlacesFilterRequest,
    PlacesResponse,
    PriorityRequest,
    SessionRequest,
    StatusResponse,
    UpdatePlaceRequest,
)
from housing.schemas.ad import PriorityUpdate

router = APIRouter()


@router.get("", response_model=PlacesResponse)
async def get_all_places(
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    location: str = "",
    rating: str = "",
    new: str = "",
    gender: str = "",
    guests: str = "",
    limit: str = "",
    offset: str = "",
    date_from: str = Query("", alias="dateFrom"),
    date_to: str = Query("", alias="dateTo"),
):
    request = PlacesFilterRequest(
        session_id=session_id,
        location=location,
        rating=rating,
        new=new,
        gender=gender,
        guests=guests,
        limit=limit,
        offset=offset,
        date_from=date_from,
        date_to=date_to,
    )
    return await clients.ads.call("GetAllPlaces", request, timeout)


@router.get("/favorites", response_model=PlacesResponse)
async def get_user_favorites(
    clients: ClientsDep, timeout: Timeout, session_id: SessionId
):
    return await clients.ads.call(
        "GetUserFavorites", SessionRequest(session_id=session_id), timeout
    )


@router.get("/cities/{city}", response_model=PlacesResponse)
async def get_places_per_city(city: str, clients: ClientsDep, timeout: Timeout):
    return await clients.ads.call(
        "GetPlacesPerCity", CityPlacesRequest(city=city), timeout
    )


@router.get("/{ad_id}", response_model=PlaceResponse)
async def get_one_place(
    ad_id: str, clients: ClientsDep, timeout: Timeout, session_id: SessionId
):
    return await clients.ads.call(
        "GetOnePlace", AdRequest(ad_id=ad_id, session_id=session_id), timeout
    )


@router.post("", response_model=PlaceResponse)
async def create_place(
    request: Request,
    clients: ClientsDep,
    settings: SettingsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    metadata, images = await read_place_form(request, settings)
    if not images:
        raise NoImages()
    message = CreatePlaceRequest(
        metadata=metadata,
        images=images,
        session_id=session_id,
        csrf_token=csrf_token,
    )
    return await clients.ads.call("CreatePlace", message, timeout)


@router.put("/{ad_id}", response_model=StatusResponse)
async def update_place(
    ad_id: str,
    request: Request,
    clients: ClientsDep,
    settings: SettingsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    metadata, images = await read_place_form(request, settings)
    message = UpdatePlaceRequest(
        ad_id=ad_id,
        metadata=metadata,
        images=images,
        session_id=session_id,
        csrf_token=csrf_token,
    )
    return await clients.ads.call("UpdatePlace", message, timeout)


@router.delete("/{ad_id}", response_model=StatusResponse)
async def delete_place(
    ad_id: str,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = AdRequest(ad_id=ad_id, session_id=session_id, csrf_token=csrf_token)
    return await clients.ads.call("DeletePlace", message, timeout)


@router.delete("/{ad_id}/images/{image_id}", response_model=StatusResponse)
async def delete_ad_image(
    ad_id: str,
    image_id: str,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = DeleteImageRequest(
        ad_id=ad_id,
        image_id=image_id,
        session_id=session_id,
        csrf_token=csrf_token,
    )
    return await clients.ads.call("DeleteAdImage", message, timeout)


@router.post("/{ad_id}/like", response_model=StatusResponse)
async def add_to_favorites(
    ad_id: str,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = AdRequest(ad_id=ad_id, session_id=session_id, csrf_token=csrf_token)
    return await clients.ads.call("AddToFavorites", message, timeout)


@router.delete("/{ad_id}/like", response_model=StatusResponse)
async def delete_from_favorites(
    ad_id: str,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = AdRequest(ad_id=ad_id, session_id=session_id, csrf_token=csrf_token)
    return await clients.ads.call("DeleteFromFavorites", message, timeout)


@router.post("/{ad_id}/priority", response_model=StatusResponse)
async def update_priority(
    ad_id: str,
    body: PriorityUpdate,
    clients: ClientsDep,
    timeout: Timeout,
    session_id: SessionId,
    csrf_token: CsrfToken,
):
    message = PriorityRequest(
        ad_id=ad_id,
        amount=body.amount,
        session_id=session_id,
        csrf_token=csrf_token,
    )
    return await clients.ads.call("UpdatePriority", message, timeout)
