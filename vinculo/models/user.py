from typing import Any, ClassVar

from sqlmodel import SQLModel, Field

# Values stored in Usuarios."Tipo". "Administrador" only appears on rows
# created by older admin bootstrap scripts.
ADMIN_ROLES = frozenset({"Admin", "Administrador"})
PROFESSIONAL_ROLE = "Profissional"

STATUS_ACTIVE = "Ativo"
STATUS_INACTIVE = "Inativo"


class UserProfile(SQLModel):
    """
    Row of public."Usuarios", the system's source of truth for a person.

    Identity:
      - auth_uid: MUST match Supabase auth.users.id once the user is created

    The table lives in the hosted Supabase project and is accessed through
    the PostgREST table API, so the model only maps column names; it is not
    a SQLAlchemy table.
    """

    table_name: ClassVar[str] = "Usuarios"
    columns: ClassVar[dict[str, str]] = {
        "id": "Usuario_ID",
        "nome": "Nome",
        "email": "Email",
        "role": "Tipo",
        "status": "Status",
        "avatar": "Foto",
        "escola_id": "Escola_ID",
        "plataforma_id": "Plataforma_ID",
        "auth_uid": "auth_uid",
    }

    id: int = Field(description="Usuario_ID")
    nome: str = Field(default="", description="Display name")
    email: str = Field(description="Unique, compared case-insensitively")
    role: str | None = Field(default=None, description="Admin | Tutor | Profissional | Familia")
    status: str | None = Field(default=None, description="Ativo | Inativo")
    avatar: str | None = None
    escola_id: int | None = None
    plataforma_id: int | None = None
    auth_uid: str | None = Field(default=None, description="Supabase auth.users.id")

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserProfile":
        return cls(
            **{
                field: row.get(column)
                for field, column in cls.columns.items()
                if row.get(column) is not None
            }
        )

    @classmethod
    def to_row(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Translate model field names to column names."""
        return {cls.columns[k]: v for k, v in values.items()}
