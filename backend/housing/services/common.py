import uuid

from housing.core.errors import AppError


def parse_uuid(value: str | uuid.UUID, error: type[AppError]) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise error()
