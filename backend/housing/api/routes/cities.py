from fastapi import APIRouter

from housing.api.deps import ClientsDep, Timeout
from housing.rpc.codec import Empty
from housing.rpc.messages import CityRequest
from housing.schemas.city import CitiesResponse, OneCityResponse

router = APIRouter()


@router.get("", response_model=CitiesResponse)
async def get_cities(clients: ClientsDep, timeout: Timeout):
    return await clients.city.call("GetCities", Empty(), timeout)


@router.get("/{city}", response_model=OneCityResponse)
async def get_one_city(city: str, clients: ClientsDep, timeout: Timeout):
    return await clients.city.call("GetOneCity", CityRequest(en_name=city), timeout)
