from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from housing.models.city import City


async def list_cities(db: AsyncSession) -> list[City]:
    result = await db.execute(select(City).order_by(City.id))
    return list(result.scalars().all())


async def get_city_by_en_title(db: AsyncSession, en_title: str) -> City | None:
    result = await db.execute(select(City).where(City.en_title == en_title))
    return result.scalar_one_or_none()


async def get_city_by_title(db: AsyncSession, title: str) -> City | None:
    result = await db.execute(select(City).where(City.title == title).limit(1))
    return result.scalar_one_or_none()


async def upsert_city(
    db: AsyncSession, title: str, en_title: str, description: str, image: str
) -> City:
    city = await get_city_by_en_title(db, en_title)
    if city is None:
        city = City(en_title=en_title)
        db.add(city)
    city.title = title
    city.description = description
    city.image = image
    await db.flush()
    return city
