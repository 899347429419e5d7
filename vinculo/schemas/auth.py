from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

from vinculo.schemas.user import UserRead


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("field cannot be empty")
        return v


class LoginResponse(SQLModel):
    """
    Returned on a successful login.

    The tokens belong to the session opened for this login; the client
    sends the access token as a Bearer token afterwards.
    """

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    profile: UserRead
