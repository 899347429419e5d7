from supabase import Client

# Free-text notes written by a user; they belong to their author.
TABLE = "Anotacoes"


class NoteRepository:

    def delete_for_user(self, db: Client, usuario_id: int) -> int:
        res = db.table(TABLE).delete().eq("Usuario_ID", usuario_id).execute()
        return len(res.data)
