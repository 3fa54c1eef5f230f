import logging
import time
import uuid
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.core.config import Settings
from housing.core.errors import (
    AdNotFound,
    CityNotFound,
    ImageNotFound,
    InvalidDates,
    InvalidPriorityAmount,
    InvalidQueryDate,
    InvalidRating,
    LimitNotInt,
    NoImages,
    NotOwner,
    OffsetNotInt,
    RoomsNumberOutOfRange,
    TooManyImages,
    UserNotFound,
    UserNotHost,
)
from housing.core.validation import (
    ImageInfo,
    clean_text,
    clean_url_param,
    inspect_image,
    sanitize,
)
from housing.crud import ad as ad_crud
from housing.crud import city as city_crud
from housing.crud import user as user_crud
from housing.models.ad import Ad
from housing.schemas.ad import AdFilter, PlaceMetadata, PlaceOut
from housing.services.common import parse_uuid
from housing.services.storage import CONTENT_TYPES, ObjectStorage, delete_quietly

logger = logging.getLogger(__name__)

MIN_ROOMS = 0
MAX_ROOMS = 1000


def _parse_non_negative(value: str, error: type[Exception]) -> int:
    try:
        number = int(value)
    except ValueError:
        raise error()
    if number < 0:
        raise error()
    return number


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidQueryDate()


def parse_filter(
    location: str = "",
    rating: str = "",
    new: str = "",
    gender: str = "",
    guests: str = "",
    limit: str = "",
    offset: str = "",
    date_from: str = "",
    date_to: str = "",
) -> AdFilter:
    """Build a listing filter from raw query parameters."""
    flt = AdFilter(location=sanitize(location), gender=sanitize(gender).lower())
    if rating:
        try:
            flt.rating = float(rating)
        except ValueError:
            raise InvalidRating()
    flt.new_this_week = new.lower() == "true"
    if guests.isdigit():
        flt.guests = int(guests)
    if limit:
        flt.limit = _parse_non_negative(limit, LimitNotInt)
    if offset:
        flt.offset = _parse_non_negative(offset, OffsetNotInt)
    if date_from:
        flt.date_from = _parse_date(date_from)
    if date_to:
        flt.date_to = _parse_date(date_to)
    return flt


class AdService:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        storage: ObjectStorage,
        settings: Settings,
    ) -> None:
        self._sessions = sessions
        self._storage = storage
        self._settings = settings

    def _clean_metadata(self, metadata: PlaceMetadata) -> PlaceMetadata:
        cleaned = PlaceMetadata(
            city_name=clean_text(metadata.city_name),
            address=clean_text(metadata.address),
            description=clean_text(metadata.description),
            rooms_number=metadata.rooms_number,
            date_from=metadata.date_from,
            date_to=metadata.date_to,
        )
        if not MIN_ROOMS <= cleaned.rooms_number <= MAX_ROOMS:
            raise RoomsNumberOutOfRange()
        if cleaned.date_from > cleaned.date_to:
            raise InvalidDates()
        return cleaned

    def _inspect_images(self, images: list[bytes]) -> list[ImageInfo]:
        if len(images) > self._settings.max_images_per_ad:
            raise TooManyImages()
        return [
            inspect_image(
                data,
                self._settings.max_image_bytes,
                self._settings.max_image_width,
                self._settings.max_image_height,
            )
            for data in images
        ]

    async def _upload(
        self,
        ad_id: uuid.UUID,
        images: list[bytes],
        infos: list[ImageInfo],
        uploaded: list[str],
    ) -> None:
        for index, (data, info) in enumerate(zip(images, infos)):
            key = f"ads/{ad_id}/{index}-{info.digest}.{info.extension}"
            path = await self._storage.put(key, data, CONTENT_TYPES[info.extension])
            uploaded.append(path)

    async def _owned_ad_id(
        self, db: AsyncSession, ad_id: str | uuid.UUID, user_id: uuid.UUID
    ) -> uuid.UUID:
        ad_uuid = parse_uuid(ad_id, AdNotFound)
        author_id = await ad_crud.get_author_id(db, ad_uuid)
        if author_id is None:
            raise AdNotFound()
        if author_id != user_id:
            raise NotOwner()
        return ad_uuid

    async def _to_places(
        self, db: AsyncSession, ads: list[Ad], user_id: uuid.UUID | None
    ) -> list[PlaceOut]:
        favorites = await ad_crud.favorite_ad_ids(db, user_id) if user_id else set()
        return [PlaceOut.from_orm(ad, is_favorite=ad.id in favorites) for ad in ads]

    async def get_all_places(
        self, flt: AdFilter, user_id: uuid.UUID | None = None
    ) -> list[PlaceOut]:
        async with self._sessions() as db:
            ads = await ad_crud.list_ads(db, flt)
            return await self._to_places(db, ads, user_id)

    async def get_one_place(
        self, ad_id: str, user_id: uuid.UUID | None = None
    ) -> PlaceOut:
        ad_uuid = parse_uuid(ad_id, AdNotFound)
        async with self._sessions() as db:
            if user_id is not None:
                await ad_crud.increment_views(db, ad_uuid)
                await db.commit()
            ad = await ad_crud.get_ad(db, ad_uuid)
            if ad is None:
                raise AdNotFound()
            places = await self._to_places(db, [ad], user_id)
            return places[0]

    async def create_place(
        self, metadata: PlaceMetadata, images: list[bytes], author_id: uuid.UUID
    ) -> PlaceOut:
        metadata = self._clean_metadata(metadata)
        if not images:
            raise NoImages()
        infos = self._inspect_images(images)

        ad_id = uuid.uuid4()
        uploaded: list[str] = []
        try:
            async with self._sessions() as db:
                author = await user_crud.get_user(db, author_id)
                if author is None:
                    raise UserNotFound()
                if not author.is_host:
                    raise UserNotHost()
                city = await city_crud.get_city_by_title(db, metadata.city_name)
                if city is None:
                    raise CityNotFound()

                await self._upload(ad_id, images, infos, uploaded)
                ad = Ad(
                    id=ad_id,
                    author_id=author.id,
                    city_id=city.id,
                    address=metadata.address,
                    description=metadata.description,
                    rooms_number=metadata.rooms_number,
                    date_from=metadata.date_from,
                    date_to=metadata.date_to,
                )
                await ad_crud.add_ad(db, ad, uploaded)
                await db.commit()
        except Exception:
            await delete_quietly(self._storage, uploaded)
            raise

        logger.info("ad %s created by %s with %d images", ad_id, author_id, len(uploaded))
        async with self._sessions() as db:
            created = await ad_crud.get_ad(db, ad_id)
            return PlaceOut.from_orm(created)

    async def update_place(
        self,
        metadata: PlaceMetadata,
        ad_id: str,
        user_id: uuid.UUID,
        images: list[bytes] | None = None,
    ) -> None:
        metadata = self._clean_metadata(metadata)
        images = images or []
        infos = self._inspect_images(images)

        uploaded: list[str] = []
        dropped: list[str] = []
        old_paths: set[str] = set()
        try:
            async with self._sessions() as db:
                ad_uuid = await self._owned_ad_id(db, ad_id, user_id)
                city = await city_crud.get_city_by_title(db, metadata.city_name)
                if city is None:
                    raise CityNotFound()
                ad = await db.get(Ad, ad_uuid)
                if ad is None:
                    raise AdNotFound()

                ad.city_id = city.id
                ad.address = metadata.address
                ad.description = metadata.description
                ad.rooms_number = metadata.rooms_number
                ad.date_from = metadata.date_from
                ad.date_to = metadata.date_to

                if images:
                    old_paths = set(await ad_crud.image_paths(db, ad_uuid))
                    await self._upload(ad_uuid, images, infos, uploaded)
                    dropped = await ad_crud.replace_images(db, ad_uuid, uploaded)
                await db.commit()
        except Exception:
            await delete_quietly(
                self._storage, [p for p in uploaded if p not in old_paths]
            )
            raise

        await delete_quietly(self._storage, dropped)
        logger.info("ad %s updated", ad_id)

    async def delete_place(self, ad_id: str, user_id: uuid.UUID) -> None:
        async with self._sessions() as db:
            ad_uuid = await self._owned_ad_id(db, ad_id, user_id)
            paths = await ad_crud.delete_ad(db, ad_uuid)
            await db.commit()
        await delete_quietly(self._storage, paths)
        logger.info("ad %s deleted with %d images", ad_id, len(paths))

    async def get_places_per_city(self, city: str) -> list[PlaceOut]:
        city = clean_url_param(city)
        async with self._sessions() as db:
            ads = await ad_crud.list_ads_by_city(db, city)
            return [PlaceOut.from_orm(ad) for ad in ads]

    async def get_user_places(self, user_id: str) -> list[PlaceOut]:
        author_id = parse_uuid(user_id, UserNotFound)
        async with self._sessions() as db:
            ads = await ad_crud.list_ads_by_author(db, author_id)
            return [PlaceOut.from_orm(ad) for ad in ads]

    async def delete_ad_image(
        self, ad_id: str, image_id: str, user_id: uuid.UUID
    ) -> None:
        start = time.perf_counter()
        try:
            image_pk = int(image_id)
        except ValueError:
            raise ImageNotFound()
        async with self._sessions() as db:
            ad_uuid = await self._owned_ad_id(db, ad_id, user_id)
            image = await ad_crud.get_image(db, ad_uuid, image_pk)
            if image is None:
                raise ImageNotFound()
            path = image.path
            await ad_crud.delete_image(db, image)
            await db.commit()
        await delete_quietly(self._storage, [path])
        logger.info(
            "image %s of ad %s deleted in %.3fs",
            image_id,
            ad_id,
            time.perf_counter() - start,
        )

    async def _require_ad(self, db: AsyncSession, ad_id: str) -> uuid.UUID:
        ad_uuid = parse_uuid(ad_id, AdNotFound)
        if await ad_crud.get_author_id(db, ad_uuid) is None:
            raise AdNotFound()
        return ad_uuid

    async def add_to_favorites(self, ad_id: str, user_id: uuid.UUID) -> None:
        async with self._sessions() as db:
            ad_uuid = await self._require_ad(db, ad_id)
            await ad_crud.add_favorite(db, user_id, ad_uuid)
            await ad_crud.update_favorites_count(db, ad_uuid)
            await db.commit()

    async def delete_from_favorites(self, ad_id: str, user_id: uuid.UUID) -> None:
        async with self._sessions() as db:
            ad_uuid = await self._require_ad(db, ad_id)
            await ad_crud.remove_favorite(db, user_id, ad_uuid)
            await ad_crud.update_favorites_count(db, ad_uuid)
            await db.commit()

    async def update_favorites_count(self, ad_id: str) -> None:
        async with self._sessions() as db:
            ad_uuid = await self._require_ad(db, ad_id)
            await ad_crud.update_favorites_count(db, ad_uuid)
            await db.commit()

    async def get_user_favorites(self, user_id: uuid.UUID) -> list[PlaceOut]:
        async with self._sessions() as db:
            ads = await ad_crud.list_favorite_ads(db, user_id)
            return [PlaceOut.from_orm(ad, is_favorite=True) for ad in ads]

    async def update_priority(
        self, ad_id: str, user_id: uuid.UUID, amount: int
    ) -> None:
        if amount <= 0:
            raise InvalidPriorityAmount()
        expires_at = datetime.now(timezone.utc) + timedelta(
            days=self._settings.priority_window_days
        )
        async with self._sessions() as db:
            ad_uuid = await self._owned_ad_id(db, ad_id, user_id)
            await ad_crud.raise_priority(db, ad_uuid, amount, expires_at)
            await db.commit()
        logger.info("ad %s priority raised by %d", ad_id, amount)

    async def reset_expired_priorities(self) -> int:
        async with self._sessions() as db:
            count = await ad_crud.reset_expired_priorities(
                db, datetime.now(timezone.utc)
            )
            await db.commit()
        if count:
            logger.info("reset priority of %d ads", count)
        return count
