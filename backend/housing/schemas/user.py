import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from housing.schemas.base import CamelModel


class UserRegister(BaseModel):
    username: str = ""
    email: str = ""
    password: str = Field(default="", repr=False)
    name: str = ""


class UserLogin(BaseModel):
    username: str = ""
    password: str = Field(default="", repr=False)


class UserUpdate(CamelModel):
    username: str | None = None
    email: str | None = None
    password: str | None = Field(default=None, repr=False)
    name: str | None = None
    sex: str | None = None
    birthdate: date | None = None
    guest_count: int | None = None
    is_host: bool | None = None


class AuthUser(BaseModel):
    id: uuid.UUID
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    session_id: str
    user: AuthUser


class AuthResult(AuthResponse):
    csrf_token: str


class UserOut(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    name: str | None = None
    score: float = 0.0
    avatar: str = ""
    sex: str | None = None
    guest_count: int = 0
    birthdate: date | None = None
    is_host: bool = False


class UsersResponse(BaseModel):
    users: list[UserOut]


class OneUserResponse(BaseModel):
    user: UserOut
