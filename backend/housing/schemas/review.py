import uuid
from datetime import datetime

from pydantic import BaseModel

from housing.models.review import Review
from housing.schemas.base import CamelModel


class ReviewUpdate(CamelModel):
    title: str = ""
    text: str = ""
    rating: int = 0


class ReviewIn(ReviewUpdate):
    host_id: str = ""


class ReviewOut(CamelModel):
    id: int
    user_id: uuid.UUID
    host_id: uuid.UUID
    title: str
    text: str
    rating: int
    created_at: datetime
    user_avatar: str = ""
    user_name: str | None = None

    @classmethod
    def from_orm(cls, obj: Review) -> "ReviewOut":
        return cls(
            id=obj.id,
            user_id=obj.user_id,
            host_id=obj.host_id,
            title=obj.title,
            text=obj.text,
            rating=obj.rating,
            created_at=obj.created_at,
            user_avatar=obj.user.avatar,
            user_name=obj.user.name,
        )


class OneReviewResponse(BaseModel):
    review: ReviewOut


class ReviewsResponse(BaseModel):
    reviews: list[ReviewOut]
