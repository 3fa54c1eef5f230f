import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from housing.models.ad import Ad, AdImage, Favorite
from housing.models.city import City
from housing.models.user import User
from housing.schemas.ad import AdFilter

NEW_AD_WINDOW = timedelta(days=7)
HOST_SEX = {"male": "M", "female": "F"}
GUEST_THRESHOLDS = {5, 10, 20, 50}
NO_SYNC = {"synchronize_session": False}


def _ads_query():
    return select(Ad).options(
        selectinload(Ad.author),
        selectinload(Ad.city),
        selectinload(Ad.images),
    )


def _ordered(statement):
    return statement.order_by(
        Ad.priority.desc(), Ad.publication_date.desc(), Ad.id
    )


async def list_ads(db: AsyncSession, flt: AdFilter) -> list[Ad]:
    statement = (
        _ads_query()
        .join(User, User.id == Ad.author_id)
        .join(City, City.id == Ad.city_id)
    )

    if flt.location:
        statement = statement.where(City.en_title == flt.location)
    if flt.rating is not None:
        statement = statement.where(User.score >= flt.rating)
    if flt.new_this_week:
        since = datetime.now(timezone.utc) - NEW_AD_WINDOW
        statement = statement.where(Ad.publication_date >= since)
    if flt.gender in HOST_SEX:
        statement = statement.where(User.sex == HOST_SEX[flt.gender])
    if flt.guests in GUEST_THRESHOLDS:
        statement = statement.where(User.guest_count > flt.guests)
    # availability overlap
    if flt.date_from is not None:
        statement = statement.where(Ad.date_to >= flt.date_from)
    if flt.date_to is not None:
        statement = statement.where(Ad.date_from <= flt.date_to)

    statement = _ordered(statement)
    if flt.offset:
        statement = statement.offset(flt.offset)
    if flt.limit is not None:
        statement = statement.limit(flt.limit)

    result = await db.execute(statement)
    return list(result.scalars().unique().all())


async def get_ad(db: AsyncSession, ad_id: uuid.UUID) -> Ad | None:
    result = await db.execute(_ads_query().where(Ad.id == ad_id))
    return result.scalar_one_or_none()


async def list_ads_by_city(db: AsyncSession, en_title: str) -> list[Ad]:
    statement = _ordered(
        _ads_query().join(City, City.id == Ad.city_id).where(City.en_title == en_title)
    )
    result = await db.execute(statement)
    return list(result.scalars().all())


async def list_ads_by_author(db: AsyncSession, user_id: uuid.UUID) -> list[Ad]:
    statement = _ordered(_ads_query().where(Ad.author_id == user_id))
    result = await db.execute(statement)
    return list(result.scalars().all())


async def list_favorite_ads(db: AsyncSession, user_id: uuid.UUID) -> list[Ad]:
    statement = (
        _ads_query()
        .join(Favorite, Favorite.ad_id == Ad.id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Ad.id)
    )
    result = await db.execute(statement)
    return list(result.scalars().all())


async def get_author_id(db: AsyncSession, ad_id: uuid.UUID) -> uuid.UUID | None:
    result = await db.execute(select(Ad.author_id).where(Ad.id == ad_id))
    return result.scalar_one_or_none()


async def increment_views(db: AsyncSession, ad_id: uuid.UUID) -> None:
    await db.execute(
        update(Ad).where(Ad.id == ad_id).values(views_count=Ad.views_count + 1)
    )


async def add_ad(db: AsyncSession, ad: Ad, image_paths: list[str]) -> Ad:
    db.add(ad)
    await db.flush()
    db.add_all(AdImage(ad_id=ad.id, path=path) for path in image_paths)
    await db.flush()
    return ad


async def image_paths(db: AsyncSession, ad_id: uuid.UUID) -> list[str]:
    result = await db.execute(
        select(AdImage.path).where(AdImage.ad_id == ad_id).order_by(AdImage.id)
    )
    return list(result.scalars().all())


async def replace_images(
    db: AsyncSession, ad_id: uuid.UUID, new_paths: list[str]
) -> list[str]:
    """Swap the image rows of an ad and return the paths that were dropped."""
    old_paths = await image_paths(db, ad_id)
    await db.execute(
        delete(AdImage).where(AdImage.ad_id == ad_id),
        execution_options=NO_SYNC,
    )
    db.add_all(AdImage(ad_id=ad_id, path=path) for path in new_paths)
    await db.flush()
    keep = set(new_paths)
    return [path for path in old_paths if path not in keep]


async def delete_ad(db: AsyncSession, ad_id: uuid.UUID) -> list[str]:
    paths = await image_paths(db, ad_id)
    await db.execute(
        delete(AdImage).where(AdImage.ad_id == ad_id),
        execution_options=NO_SYNC,
    )
    await db.execute(
        delete(Favorite).where(Favorite.ad_id == ad_id),
        execution_options=NO_SYNC,
    )
    await db.execute(
        delete(Ad).where(Ad.id == ad_id),
        execution_options=NO_SYNC,
    )
    return paths


async def get_image(
    db: AsyncSession, ad_id: uuid.UUID, image_id: int
) -> AdImage | None:
    result = await db.execute(
        select(AdImage).where(AdImage.ad_id == ad_id, AdImage.id == image_id)
    )
    return result.scalar_one_or_none()


async def delete_image(db: AsyncSession, image: AdImage) -> None:
    await db.execute(
        delete(AdImage).where(AdImage.id == image.id),
        execution_options=NO_SYNC,
    )


async def favorite_ad_ids(db: AsyncSession, user_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(Favorite.ad_id).where(Favorite.user_id == user_id)
    )
    return set(result.scalars().all())


async def add_favorite(db: AsyncSession, user_id: uuid.UUID, ad_id: uuid.UUID) -> None:
    existing = await db.get(Favorite, (user_id, ad_id))
    if existing is None:
        db.add(Favorite(user_id=user_id, ad_id=ad_id))
        await db.flush()


async def remove_favorite(
    db: AsyncSession, user_id: uuid.UUID, ad_id: uuid.UUID
) -> None:
    await db.execute(
        delete(Favorite).where(Favorite.user_id == user_id, Favorite.ad_id == ad_id),
        execution_options=NO_SYNC,
    )


async def update_favorites_count(db: AsyncSession, ad_id: uuid.UUID) -> None:
    count = (
        select(func.count())
        .select_from(Favorite)
        .where(Favorite.ad_id == ad_id)
        .scalar_subquery()
    )
    await db.execute(
        update(Ad)
        .where(Ad.id == ad_id)
        .values(favorites_count=count)
        .execution_options(**NO_SYNC)
    )


async def raise_priority(
    db: AsyncSession, ad_id: uuid.UUID, amount: int, expires_at: datetime
) -> None:
    await db.execute(
        update(Ad)
        .where(Ad.id == ad_id)
        .values(priority=Ad.priority + amount, priority_expires_at=expires_at)
    )


async def reset_expired_priorities(db: AsyncSession, now: datetime) -> int:
    result = await db.execute(
        update(Ad)
        .where(Ad.priority_expires_at.is_not(None), Ad.priority_expires_at < now)
        .values(priority=0, priority_expires_at=None)
        .execution_options(**NO_SYNC)
    )
    return result.rowcount or 0
