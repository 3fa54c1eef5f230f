import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.core.errors import (
    IncorrectDataForms,
    InvalidCredentials,
    NoSuchSession,
    UserAlreadyExists,
    UserNotFound,
)
from housing.core.security import CsrfTokens, hash_password, verify_password
from housing.core.validation import (
    validate_email,
    validate_login,
    validate_name,
    validate_password,
    validate_sex,
)
from housing.crud import user as user_crud
from housing.models.user import User
from housing.schemas.session import SessionData
from housing.schemas.user import (
    AuthResult,
    AuthUser,
    UserLogin,
    UserOut,
    UserRegister,
    UserUpdate,
)
from housing.services.common import parse_uuid
from housing.services.sessions import SessionService

logger = logging.getLogger(__name__)


def _registration_errors(data: UserRegister) -> list[str]:
    wrong_fields = []
    if not data.username or not validate_login(data.username):
        wrong_fields.append("username")
    if not data.email or not validate_email(data.email):
        wrong_fields.append("email")
    if not data.password or not validate_password(data.password):
        wrong_fields.append("password")
    if data.name and not validate_name(data.name):
        wrong_fields.append("name")
    return wrong_fields


def _update_errors(data: UserUpdate) -> list[str]:
    checks = [
        ("username", data.username, validate_login),
        ("email", data.email, validate_email),
        ("password", data.password, validate_password),
        ("name", data.name, validate_name),
        ("sex", data.sex, validate_sex),
    ]
    wrong_fields = [
        field for field, value, check in checks if value is not None and not check(value)
    ]
    if data.guest_count is not None and data.guest_count < 0:
        wrong_fields.append("guestCount")
    return wrong_fields


class AuthService:
    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        session_service: SessionService,
        csrf: CsrfTokens,
    ) -> None:
        self._sessions = sessions
        self._session_service = session_service
        self._csrf = csrf

    async def _start_session(self, user: User) -> AuthResult:
        session_id = await self._session_service.create(user.id)
        return AuthResult(
            session_id=session_id,
            csrf_token=self._csrf.create(session_id),
            user=AuthUser.model_validate(user),
        )

    async def register(self, data: UserRegister) -> AuthResult:
        wrong_fields = _registration_errors(data)
        if wrong_fields:
            raise IncorrectDataForms(wrong_fields)

        async with self._sessions() as db:
            if await user_crud.find_conflicting_user(db, data.username, data.email):
                raise UserAlreadyExists()
            user = await user_crud.create_user(
                db,
                username=data.username,
                email=data.email,
                password_hash=hash_password(data.password),
                name=data.name or None,
            )
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise UserAlreadyExists()

        logger.info("user %s registered", user.id)
        return await self._start_session(user)

    async def login(self, data: UserLogin) -> AuthResult:
        wrong_fields = []
        if not data.username or not validate_login(data.username):
            wrong_fields.append("username")
        if not data.password:
            wrong_fields.append("password")
        if wrong_fields:
            raise IncorrectDataForms(wrong_fields)

        async with self._sessions() as db:
            user = await user_crud.get_user_by_username(db, data.username)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("failed login for %s", data.username)
            raise InvalidCredentials()
        return await self._start_session(user)

    async def logout(self, session_id: str | None) -> None:
        if not await self._session_service.invalidate(session_id):
            raise NoSuchSession()

    async def authenticate(self, session_id: str | None) -> uuid.UUID:
        return await self._session_service.lookup(session_id)

    def check_csrf(self, token: str | None, session_id: str) -> None:
        self._csrf.validate(token, session_id)

    async def refresh_csrf_token(self, session_id: str | None) -> str:
        await self._session_service.lookup(session_id)
        return self._csrf.create(session_id)

    async def _session_user(self, session_id: str | None) -> User:
        user_id = await self._session_service.lookup(session_id)
        async with self._sessions() as db:
            user = await user_crud.get_user(db, user_id)
        if user is None:
            raise UserNotFound()
        return user

    async def get_session_data(self, session_id: str | None) -> SessionData:
        user = await self._session_user(session_id)
        return SessionData(id=str(user.id), avatar=user.avatar)

    async def get_current_user(self, session_id: str | None) -> UserOut:
        return UserOut.model_validate(await self._session_user(session_id))

    async def get_all_users(self) -> list[UserOut]:
        async with self._sessions() as db:
            users = await user_crud.list_users(db)
        return [UserOut.model_validate(u) for u in users]

    async def get_user_by_id(self, user_id: str) -> UserOut:
        user_uuid = parse_uuid(user_id, UserNotFound)
        async with self._sessions() as db:
            user = await user_crud.get_user(db, user_uuid)
        if user is None:
            raise UserNotFound()
        return UserOut.model_validate(user)

    async def update_user(self, user_id: uuid.UUID, data: UserUpdate) -> UserOut:
        wrong_fields = _update_errors(data)
        if wrong_fields:
            raise IncorrectDataForms(wrong_fields)

        async with self._sessions() as db:
            user = await user_crud.get_user(db, user_id)
            if user is None:
                raise UserNotFound()
            if await user_crud.find_conflicting_user(
                db, data.username, data.email, exclude_id=user.id
            ):
                raise UserAlreadyExists()

            changes = data.model_dump(exclude_unset=True, exclude={"password"})
            for field, value in changes.items():
                if value is not None:
                    setattr(user, field, value)
            if data.password is not None:
                user.password_hash = hash_password(data.password)

            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise UserAlreadyExists()

        logger.info("user %s updated", user_id)
        return UserOut.model_validate(user)
