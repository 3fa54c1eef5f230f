"""Error taxonomy shared by the use-cases, the RPC layer and the gateway.

Every public failure is an ``AppError`` subclass carrying its client-facing
message, the HTTP status the gateway answers with and the RPC status code the
backend services abort with. The RPC client rebuilds the same class from the
message, so callers never match on error text.
"""

import grpc
from fastapi import status

_registry: dict[str, type["AppError"]] = {}


class AppError(Exception):
    message = "internal server error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    rpc_code = grpc.StatusCode.INTERNAL

    def __init__(self, message: str | None = None) -> None:
        self.message = message or type(self).message
        super().__init__(self.message)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if "message" in cls.__dict__:
            _registry[cls.message] = cls

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    rpc_code = grpc.StatusCode.NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    rpc_code = grpc.StatusCode.ALREADY_EXISTS


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    rpc_code = grpc.StatusCode.UNAUTHENTICATED


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    rpc_code = grpc.StatusCode.INVALID_ARGUMENT


class AdNotFound(NotFoundError):
    message = "ad not found"


class CityNotFound(NotFoundError):
    message = "city not found"


class ImageNotFound(NotFoundError):
    message = "image not found"


class UserNotFound(NotFoundError):
    message = "user not found"


class ReviewNotFound(NotFoundError):
    message = "review not found"


class AdAlreadyExists(ConflictError):
    message = "ad already exists"


class UserAlreadyExists(ConflictError):
    message = "User already exists"


class ReviewAlreadyExists(ConflictError):
    message = "review already exist"


class SelfReview(ConflictError):
    message = "host and user are the same"


class NotOwner(UnauthorizedError):
    message = "not owner of ad"


class NoActiveSession(UnauthorizedError):
    message = "no active session"


class SessionExpired(UnauthorizedError):
    message = "session expired"


class MissingCsrfToken(UnauthorizedError):
    message = "Missing X-CSRF-Token header"


class InvalidJwtToken(UnauthorizedError):
    message = "Invalid JWT token"


class UserNotHost(UnauthorizedError):
    message = "User is not host"


class InvalidCredentials(UnauthorizedError):
    message = "Invalid credentials"


class InvalidMetadata(BadRequestError):
    message = "Invalid metadata JSON"


class InvalidMultipartForm(BadRequestError):
    message = "Invalid multipart form"


class InvalidImage(BadRequestError):
    message = "Invalid size, type or resolution of image"


class InvalidCharacters(BadRequestError):
    message = "Input contains invalid characters"


class CharacterLimitExceeded(BadRequestError):
    message = "Input exceeds character limit"


class RoomsNumberOutOfRange(BadRequestError):
    message = "RoomsNumber out of range"


class LimitNotInt(BadRequestError):
    message = "query limit not int"


class OffsetNotInt(BadRequestError):
    message = "query offset not int"


class InvalidQueryDate(BadRequestError):
    message = "query date not valid"


class InvalidRating(BadRequestError):
    message = "query rating not valid"


class NoImages(BadRequestError):
    message = "No images"


class TooManyImages(BadRequestError):
    message = "Too many images"


class UrlInvalidCharacters(BadRequestError):
    message = "URL contains invalid characters"


class UrlCharacterLimitExceeded(BadRequestError):
    message = "URL exceeds character limit"


class InvalidDates(BadRequestError):
    message = "Invalid dates"


class InvalidPriorityAmount(BadRequestError):
    message = "Invalid priority amount"


class ScoreOutOfRange(BadRequestError):
    message = "score out of range"


class InvalidRequestBody(BadRequestError):
    message = "Invalid request body"


class NoSuchSession(BadRequestError):
    message = "No such session"


class IncorrectDataForms(BadRequestError):
    message = "Incorrect data forms"

    def __init__(self, wrong_fields: list[str] | None = None) -> None:
        super().__init__()
        self.wrong_fields = list(wrong_fields or [])

    def to_dict(self) -> dict:
        return {"error": self.message, "wrongFields": self.wrong_fields}


class DeadlineExceeded(AppError):
    message = "deadline exceeded"
    rpc_code = grpc.StatusCode.DEADLINE_EXCEEDED


def error_from_message(message: str, wrong_fields: list[str] | None = None) -> AppError:
    cls = _registry.get(message)
    if cls is None:
        return AppError(message)
    if cls is IncorrectDataForms:
        return IncorrectDataForms(wrong_fields)
    return cls()
