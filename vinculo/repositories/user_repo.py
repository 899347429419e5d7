from typing import Any

from supabase import Client

from vinculo.models.user import UserProfile

TABLE = UserProfile.table_name
PK = UserProfile.columns["id"]


def ilike_literal(value: str) -> str:
    """
    Escape LIKE wildcards so `ilike` behaves as case-insensitive equality.

    "a_b@x.com" must not match "axb@x.com".
    """
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


class ProfileRepository:
    """
    Data access layer for UserProfile (public."Usuarios").

    Responsibilities:
      - Pure table operations through the Supabase table API
      - No FastAPI, no HTTP, no business logic
      - postgrest APIError propagates to the caller
    """

    # ----- Queries -----

    def _first(self, rows: list[dict[str, Any]]) -> UserProfile | None:
        return UserProfile.from_row(rows[0]) if rows else None

    def get_by_id(self, db: Client, profile_id: int) -> UserProfile | None:
        """Return a profile by Usuario_ID, or None if not found."""
        res = db.table(TABLE).select("*").eq(PK, profile_id).limit(1).execute()
        return self._first(res.data)

    def get_by_email(self, db: Client, email: str) -> UserProfile | None:
        """
        Return the profile whose email matches, ignoring case.

        Emails are stored lowercased by this system, but rows created by
        hand or by the auth trigger may not be.
        """
        res = (
            db.table(TABLE)
            .select("*")
            .ilike("Email", ilike_literal(email))
            .limit(1)
            .execute()
        )
        return self._first(res.data)

    def get_by_auth_uid(self, db: Client, auth_uid: str) -> UserProfile | None:
        res = db.table(TABLE).select("*").eq("auth_uid", auth_uid).limit(1).execute()
        return self._first(res.data)

    def list(self, db: Client) -> list[UserProfile]:
        """All profiles ordered by name."""
        res = db.table(TABLE).select("*").order("Nome").execute()
        return [UserProfile.from_row(r) for r in res.data]

    def is_empty(self, db: Client) -> bool:
        res = db.table(TABLE).select(PK).limit(1).execute()
        return not res.data

    def list_emails(self, db: Client) -> set[str]:
        """Lowercased emails of every profile."""
        res = db.table(TABLE).select("Email").execute()
        return {r["Email"].lower() for r in res.data if r.get("Email")}

    def list_auth_uids(self, db: Client) -> set[str]:
        res = db.table(TABLE).select("auth_uid").execute()
        return {r["auth_uid"] for r in res.data if r.get("auth_uid")}

    # ----- Writes -----

    def create(self, db: Client, values: dict[str, Any]) -> UserProfile:
        """Insert a new profile and return the persisted row."""
        res = db.table(TABLE).insert(UserProfile.to_row(values)).execute()
        return UserProfile.from_row(res.data[0])

    def update(self, db: Client, profile_id: int, values: dict[str, Any]) -> UserProfile | None:
        """
        Patch the given fields of a profile.

        Returns the updated row, or None if no row has this id.
        """
        res = (
            db.table(TABLE)
            .update(UserProfile.to_row(values))
            .eq(PK, profile_id)
            .execute()
        )
        return self._first(res.data)

    def delete(self, db: Client, profile_id: int) -> int:
        """Delete a profile; returns the number of rows removed."""
        res = db.table(TABLE).delete().eq(PK, profile_id).execute()
        return len(res.data)
