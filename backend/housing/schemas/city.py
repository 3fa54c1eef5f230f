from pydantic import BaseModel

from housing.schemas.base import CamelModel


class CityOut(CamelModel):
    id: int
    title: str
    en_title: str
    description: str = ""
    image: str = ""


class CitiesResponse(BaseModel):
    cities: list[CityOut]


class OneCityResponse(BaseModel):
    city: CityOut


class CityIn(CamelModel):
    title: str
    en_title: str
    description: str = ""
    image: str = ""
