from pydantic import BaseModel


class SessionData(BaseModel):
    id: str
    avatar: str = ""


class CsrfTokenResponse(BaseModel):
    csrf_token: str
