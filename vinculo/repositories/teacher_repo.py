from typing import Any

from supabase import Client

from vinculo.models.teacher import TEACHER_FK, TeacherLink

TABLE = TeacherLink.table_name


class TeacherRepository:
    """
    Data access for TeacherLink (public."Professores") and the rows that
    reference it by "Professor_ID".
    """

    def get_by_user_id(self, db: Client, usuario_id: int) -> TeacherLink | None:
        res = (
            db.table(TABLE)
            .select("*")
            .eq("Usuario_ID", usuario_id)
            .limit(1)
            .execute()
        )
        return TeacherLink.from_row(res.data[0]) if res.data else None

    def create(self, db: Client, values: dict[str, Any]) -> TeacherLink:
        res = db.table(TABLE).insert(TeacherLink.to_row(values)).execute()
        return TeacherLink.from_row(res.data[0])

    def update_school(self, db: Client, usuario_id: int, escola_id: int) -> int:
        """Move the teacher link of a profile to another school; returns rows touched."""
        res = (
            db.table(TABLE)
            .update({"Escola_ID": escola_id})
            .eq("Usuario_ID", usuario_id)
            .execute()
        )
        return len(res.data)

    def delete(self, db: Client, teacher_id: int) -> int:
        res = db.table(TABLE).delete().eq(TEACHER_FK, teacher_id).execute()
        return len(res.data)

    # ----- Dependent rows -----

    def delete_dependents(self, db: Client, table: str, teacher_id: int) -> int:
        """Delete every row of `table` pointing at the teacher link."""
        res = db.table(table).delete().eq(TEACHER_FK, teacher_id).execute()
        return len(res.data)

    def detach_dependents(self, db: Client, table: str, teacher_id: int) -> int:
        """Null the teacher reference on `table`, keeping the rows."""
        res = (
            db.table(table)
            .update({TEACHER_FK: None})
            .eq(TEACHER_FK, teacher_id)
            .execute()
        )
        return len(res.data)
