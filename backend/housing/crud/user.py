import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from housing.models.user import User


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def find_conflicting_user(
    db: AsyncSession,
    username: str | None,
    email: str | None,
    exclude_id: uuid.UUID | None = None,
) -> User | None:
    clauses = []
    if username is not None:
        clauses.append(User.username == username)
    if email is not None:
        clauses.append(User.email == email)
    if not clauses:
        return None
    statement = select(User).where(or_(*clauses))
    if exclude_id is not None:
        statement = statement.where(User.id != exclude_id)
    result = await db.execute(statement.limit(1))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    username: str,
    email: str,
    password_hash: str,
    name: str | None = None,
) -> User:
    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        name=name,
    )
    db.add(user)
    await db.flush()
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at, User.username))
    return list(result.scalars().all())
