import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.core.errors import (
    CharacterLimitExceeded,
    InvalidCharacters,
    ReviewAlreadyExists,
    ReviewNotFound,
    ScoreOutOfRange,
    SelfReview,
    UserNotFound,
)
from housing.core.validation import sanitize, validate_review_text
from housing.crud import review as review_crud
from housing.crud import user as user_crud
from housing.schemas.review import ReviewIn, ReviewOut, ReviewUpdate
from housing.services.common import parse_uuid

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_REVIEW_LENGTH = 1000
MIN_RATING, MAX_RATING = 1, 5


def _clean_review(data: ReviewUpdate) -> tuple[str, str]:
    title = sanitize(data.title)
    text = sanitize(data.text)
    if not validate_review_text(title) or not validate_review_text(text):
        raise InvalidCharacters()
    if not MIN_RATING <= data.rating <= MAX_RATING:
        raise ScoreOutOfRange()
    if len(title) > MAX_TITLE_LENGTH or len(text) > MAX_REVIEW_LENGTH:
        raise CharacterLimitExceeded()
    return title, text


class ReviewService:
    """Guest reviews of hosts.

    Every change recomputes the host's score as the mean rating of their
    reviews, which is what the listing ``rating`` filter compares against.
    """

    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def create_review(self, user_id: uuid.UUID, data: ReviewIn) -> ReviewOut:
        title, text = _clean_review(data)
        host_id = parse_uuid(data.host_id, UserNotFound)
        if host_id == user_id:
            raise SelfReview()

        async with self._sessions() as db:
            if await user_crud.get_user(db, host_id) is None:
                raise UserNotFound()
            if await review_crud.get_review(db, user_id, host_id) is not None:
                raise ReviewAlreadyExists()
            await review_crud.add_review(
                db, user_id, host_id, title=title, text=text, rating=data.rating
            )
            score = await review_crud.update_host_score(db, host_id)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise ReviewAlreadyExists()

        logger.info("review of host %s added, score now %.1f", host_id, score)
        async with self._sessions() as db:
            review = await review_crud.get_review(db, user_id, host_id)
        return ReviewOut.from_orm(review)

    async def get_user_reviews(self, user_id: str) -> list[ReviewOut]:
        host_id = parse_uuid(user_id, UserNotFound)
        async with self._sessions() as db:
            if await user_crud.get_user(db, host_id) is None:
                raise UserNotFound()
            reviews = await review_crud.list_host_reviews(db, host_id)
        return [ReviewOut.from_orm(r) for r in reviews]

    async def update_review(
        self, user_id: uuid.UUID, host_id: str, data: ReviewUpdate
    ) -> None:
        title, text = _clean_review(data)
        host_uuid = parse_uuid(host_id, ReviewNotFound)
        async with self._sessions() as db:
            review = await review_crud.get_review(db, user_id, host_uuid)
            if review is None:
                raise ReviewNotFound()
            review.title = title
            review.text = text
            review.rating = data.rating
            score = await review_crud.update_host_score(db, host_uuid)
            await db.commit()
        logger.info("review of host %s updated, score now %.1f", host_uuid, score)

    async def delete_review(self, user_id: uuid.UUID, host_id: str) -> None:
        host_uuid = parse_uuid(host_id, ReviewNotFound)
        async with self._sessions() as db:
            review = await review_crud.get_review(db, user_id, host_uuid)
            if review is None:
                raise ReviewNotFound()
            await review_crud.delete_review(db, review.id)
            score = await review_crud.update_host_score(db, host_uuid)
            await db.commit()
        logger.info("review of host %s deleted, score now %.1f", host_uuid, score)
