import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from housing.crud.ad import NO_SYNC
from housing.models.review import Review
from housing.models.user import User


def _reviews_query():
    return select(Review).options(selectinload(Review.user))


async def get_review(
    db: AsyncSession, user_id: uuid.UUID, host_id: uuid.UUID
) -> Review | None:
    result = await db.execute(
        _reviews_query().where(Review.user_id == user_id, Review.host_id == host_id)
    )
    return result.scalar_one_or_none()


async def list_host_reviews(db: AsyncSession, host_id: uuid.UUID) -> list[Review]:
    result = await db.execute(
        _reviews_query()
        .where(Review.host_id == host_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return list(result.scalars().all())


async def add_review(
    db: AsyncSession,
    user_id: uuid.UUID,
    host_id: uuid.UUID,
    title: str,
    text: str,
    rating: int,
) -> Review:
    review = Review(
        user_id=user_id, host_id=host_id, title=title, text=text, rating=rating
    )
    db.add(review)
    await db.flush()
    return review


async def delete_review(db: AsyncSession, review_id: int) -> None:
    await db.execute(delete(Review).where(Review.id == review_id), execution_options=NO_SYNC)


async def update_host_score(db: AsyncSession, host_id: uuid.UUID) -> float:
    """Store the host's mean review rating, rounded to one decimal."""
    result = await db.execute(
        select(func.avg(Review.rating)).where(Review.host_id == host_id)
    )
    average = result.scalar_one_or_none()
    score = round(float(average), 1) if average is not None else 0.0
    await db.execute(
        update(User)
        .where(User.id == host_id)
        .values(score=score)
        .execution_options(**NO_SYNC)
    )
    return score
