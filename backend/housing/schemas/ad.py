import uuid
from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, Field

from housing.models.ad import Ad
from housing.schemas.base import CamelModel


class ImageOut(CamelModel):
    id: int
    path: str


class AuthorOut(CamelModel):
    rating: float = 0.0
    avatar: str = ""
    name: str | None = None
    sex: str | None = None
    birthdate: date | None = Field(default=None, alias="birthDate")
    guest_count: int = 0


class PlaceOut(CamelModel):
    id: uuid.UUID
    city_id: int
    author_uuid: uuid.UUID = Field(alias="authorUUID")
    address: str
    publication_date: datetime
    description: str
    rooms_number: int
    views_count: int = 0
    favorites_count: int = 0
    priority: int = 0
    priority_expires_at: datetime | None = None
    city_name: str = ""
    date_from: date
    date_to: date
    is_favorite: bool = False
    author: AuthorOut
    images: list[ImageOut] = Field(default_factory=list)

    @classmethod
    def from_orm(cls, obj: Ad, is_favorite: bool = False) -> "PlaceOut":
        return cls(
            id=obj.id,
            city_id=obj.city_id,
            author_uuid=obj.author_id,
            address=obj.address,
            publication_date=obj.publication_date,
            description=obj.description,
            rooms_number=obj.rooms_number,
            views_count=obj.views_count,
            favorites_count=obj.favorites_count,
            priority=obj.priority,
            priority_expires_at=obj.priority_expires_at,
            city_name=obj.city.title,
            date_from=obj.date_from,
            date_to=obj.date_to,
            is_favorite=is_favorite,
            author=AuthorOut(
                rating=obj.author.score,
                avatar=obj.author.avatar,
                name=obj.author.name,
                sex=obj.author.sex,
                birthdate=obj.author.birthdate,
                guest_count=obj.author.guest_count,
            ),
            images=[ImageOut(id=img.id, path=img.path) for img in obj.images],
        )


class PlaceMetadata(CamelModel):
    city_name: str = ""
    address: str = ""
    description: str = ""
    rooms_number: int = 0
    date_from: date
    date_to: date


class PriorityUpdate(BaseModel):
    amount: int


@dataclass
class AdFilter:
    location: str = ""
    rating: float | None = None
    new_this_week: bool = False
    gender: str = ""
    guests: int | None = None
    limit: int | None = None
    offset: int = 0
    date_from: date | None = None
    date_to: date | None = None
