from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# Roles an administrator can assign. Values are stored as-is in Usuarios."Tipo".
Role = Literal["Admin", "Tutor", "Profissional", "Familia"]
Status = Literal["Ativo", "Inativo"]


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("nome cannot be empty")
    return v


class UserCreate(SQLModel):
    """
    Payload for creating a user (admin only).

    Email shape and password length are checked by UserService so the CLI
    gets the same rules; this schema only normalizes the name.
    """

    model_config = ConfigDict(extra="forbid")

    nome: str = Field(max_length=200)
    email: str
    senha: str
    role: Role
    avatar: str | None = None
    escola_id: int | None = None
    plataforma_id: int | None = None

    @field_validator("nome")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return _strip_name(v)


class UserUpdate(SQLModel):
    """
    Partial profile update (admin only).
    Email and status are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    nome: str | None = Field(default=None, max_length=200)
    role: Role | None = None
    avatar: str | None = None
    escola_id: int | None = None

    @field_validator("nome")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return _strip_name(v)


class UserStatusUpdate(SQLModel):
    """
    Admin-only activation / deactivation.
    """

    model_config = ConfigDict(extra="forbid")
    status: Status


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: int
    nome: str
    email: str
    role: str | None = None
    status: str | None = None
    avatar: str | None = None
    escola_id: int | None = None
    plataforma_id: int | None = None
    auth_uid: str | None = None


class UserCreated(SQLModel):
    """
    Result of a user creation.

    `warnings` lists best-effort steps that failed (e.g. the teacher link)
    while the user itself was created.
    """

    identity_id: str
    profile: UserRead
    warnings: list[str] = []


class CascadeStep(SQLModel):
    """Outcome of one step of the delete cascade."""

    table: str
    action: Literal["lookup", "delete", "detach"]
    affected: int = 0
    error: str | None = None


class DeletionReport(SQLModel):
    """
    Per-step outcomes of a user deletion.

    partial is True when the profile row went away but at least one
    dependent cleanup step failed.
    """

    profile_id: int
    profile_deleted: bool = False
    teacher_id: int | None = None
    identity_deleted: bool = False
    partial: bool = False
    steps: list[CascadeStep] = []
