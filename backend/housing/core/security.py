import secrets
from datetime import UTC, datetime, timedelta

import jwt
from pwdlib import PasswordHash

from housing.core.config import Settings
from housing.core.errors import InvalidJwtToken, MissingCsrfToken

SESSION_ID_BYTES = 32

pwd_context = PasswordHash.recommended()


def hash_password(password: str) -> str:
    return pwd_context.hash(password=password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def new_session_id() -> str:
    # url-safe base64, unpadded
    return secrets.token_urlsafe(SESSION_ID_BYTES)


class CsrfTokens:
    """Issues and checks CSRF tokens bound to a session id."""

    def __init__(self, settings: Settings) -> None:
        self._key = settings.secret_key.get_secret_value()
        self._algorithm = settings.algorithm
        self._ttl = timedelta(minutes=settings.csrf_token_expire_minutes)

    def create(self, session_id: str, expires_delta: timedelta | None = None) -> str:
        now = datetime.now(UTC)
        to_encode = {
            "sid": session_id,
            "iat": now,
            "exp": now + (expires_delta or self._ttl),
        }
        return jwt.encode(to_encode, self._key, algorithm=self._algorithm)

    def validate(self, token: str | None, session_id: str) -> None:
        if not token:
            raise MissingCsrfToken()
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sid"]},
            )
        except jwt.InvalidTokenError:
            raise InvalidJwtToken()
        if payload.get("sid") != session_id:
            raise InvalidJwtToken()
