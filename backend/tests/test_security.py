import base64
from datetime import timedelta

import jwt
import pytest

from housing.core.errors import InvalidJwtToken, MissingCsrfToken
from housing.core.security import (
    CsrfTokens,
    hash_password,
    new_session_id,
    verify_password,
)


def _decode(session_id: str) -> bytes:
    return base64.urlsafe_b64decode(session_id + "=" * (-len(session_id) % 4))


def test_session_ids_are_long_and_distinct():
    ids = {new_session_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(_decode(i)) >= 32 for i in ids)


def test_password_hash_roundtrip():
    hashed = hash_password("password1")
    assert hashed != "password1"
    assert verify_password("password1", hashed)
    assert not verify_password("password2", hashed)


def test_csrf_token_bound_to_session(settings):
    tokens = CsrfTokens(settings)
    token = tokens.create("session-a")
    tokens.validate(token, "session-a")
    with pytest.raises(InvalidJwtToken):
        tokens.validate(token, "session-b")


def test_csrf_token_missing(settings):
    with pytest.raises(MissingCsrfToken):
        CsrfTokens(settings).validate("", "session-a")


def test_csrf_token_expired(settings):
    tokens = CsrfTokens(settings)
    token = tokens.create("session-a", expires_delta=timedelta(seconds=-1))
    with pytest.raises(InvalidJwtToken):
        tokens.validate(token, "session-a")


def test_csrf_token_with_foreign_signature(settings):
    forged = jwt.encode(
        {"sid": "session-a", "exp": 4102444800},
        "another-secret-key-of-sufficient-length",
        algorithm="HS256",
    )
    with pytest.raises(InvalidJwtToken):
        CsrfTokens(settings).validate(forged, "session-a")
