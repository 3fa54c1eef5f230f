import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from housing.core.config import get_settings
from housing.core.logger import setup_logging
from housing.crud import city as city_crud
from housing.db.session import build_engine, build_sessionmaker, create_tables
from housing.schemas.city import CityIn

logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> list[CityIn]:
    return TypeAdapter(list[CityIn]).validate_json(path.read_bytes())


async def seed_cities(database_url: str, cities: list[CityIn]) -> int:
    engine = build_engine(database_url)
    try:
        await create_tables(engine)
        async with build_sessionmaker(engine)() as db:
            for city in cities:
                await city_crud.upsert_city(
                    db,
                    title=city.title,
                    en_title=city.en_title,
                    description=city.description,
                    image=city.image,
                )
            await db.commit()
    finally:
        await engine.dispose()
    return len(cities)


def main() -> None:
    parser = argparse.ArgumentParser(description="Load the city catalog.")
    parser.add_argument("catalog", type=Path, help="JSON list of cities")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        cities = load_catalog(args.catalog)
    except (OSError, ValidationError):
        logger.exception("cannot read %s", args.catalog)
        sys.exit(1)
    count = asyncio.run(seed_cities(settings.database_url, cities))
    logger.info("seeded %d cities", count)


if __name__ == "__main__":
    main()
