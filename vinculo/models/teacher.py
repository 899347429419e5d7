from typing import Any, ClassVar

from sqlmodel import SQLModel, Field


class TeacherLink(SQLModel):
    """
    Row of public."Professores".

    Exists only for profiles with role "Profissional"; at most one per
    profile. Classes, lessons, PEI reports, evaluations and availability
    slots reference it through "Professor_ID".
    """

    table_name: ClassVar[str] = "Professores"
    columns: ClassVar[dict[str, str]] = {
        "id": "Professor_ID",
        "usuario_id": "Usuario_ID",
        "nome": "Nome",
        "email": "Email",
        "escola_id": "Escola_ID",
        "especialidade": "Especialidade",
        "plataforma_id": "Plataforma_ID",
    }

    id: int = Field(description="Professor_ID")
    usuario_id: int = Field(description="Usuarios.Usuario_ID")
    nome: str | None = None
    email: str | None = None
    escola_id: int | None = None
    especialidade: str | None = None
    plataforma_id: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TeacherLink":
        return cls(
            **{
                field: row.get(column)
                for field, column in cls.columns.items()
                if row.get(column) is not None
            }
        )

    @classmethod
    def to_row(cls, values: dict[str, Any]) -> dict[str, Any]:
        return {cls.columns[k]: v for k, v in values.items()}


# Tables whose rows point at a teacher link.
# Availability slots are meaningless without the teacher and are deleted;
# the others are historical records and only lose the reference.
AVAILABILITY_TABLE = "Disponibilidade"
DETACHED_ON_DELETE = ("Turmas", "Aulas", "Relatorios_PEI", "Avaliacoes")
TEACHER_FK = "Professor_ID"
