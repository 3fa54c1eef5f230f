from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.core.errors import CityNotFound
from housing.core.validation import clean_url_param
from housing.crud import city as city_crud
from housing.schemas.city import CityOut


class CityService:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def get_cities(self) -> list[CityOut]:
        async with self._sessions() as db:
            cities = await city_crud.list_cities(db)
        return [CityOut.model_validate(c) for c in cities]

    async def get_one_city(self, en_name: str) -> CityOut:
        en_name = clean_url_param(en_name)
        async with self._sessions() as db:
            city = await city_crud.get_city_by_en_title(db, en_name)
        if city is None:
            raise CityNotFound()
        return CityOut.model_validate(city)
