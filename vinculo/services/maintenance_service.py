import logging

from postgrest.exceptions import APIError
from supabase import Client

from vinculo.core.errors import (
    BootstrapRefusedError,
    IdentityCreationError,
    InvalidUserDataError,
    ProfilePersistError,
)
from vinculo.core.identity import Identity, IdentityProvider
from vinculo.models.user import STATUS_ACTIVE, UserProfile
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.services.user_service import normalize_email, validate_password

logger = logging.getLogger(__name__)

BOOTSTRAP_ROLE = "Admin"


class MaintenanceService:
    """
    Operator tasks that used to be run by hand from a browser console.

    Every method assumes a service-role client; the CLI refuses to start
    without one.
    """

    def __init__(self, profiles: ProfileRepository, identity: IdentityProvider):
        self.profiles = profiles
        self.identity = identity

    def bootstrap_admin(self, db: Client, email: str, senha: str, nome: str) -> UserProfile:
        """
        Create the first administrator of an empty installation.

        The profile row is written first and rolled back if the sign-up
        fails, so a failed bootstrap leaves the table empty again.
        """
        email = normalize_email(email)
        validate_password(senha)

        if not self.profiles.is_empty(db):
            raise BootstrapRefusedError(
                "A tabela Usuarios já possui registros; use o cadastro de usuários."
            )

        try:
            profile = self.profiles.create(
                db,
                {
                    "nome": nome,
                    "email": email,
                    "role": BOOTSTRAP_ROLE,
                    "status": STATUS_ACTIVE,
                    "auth_uid": None,
                },
            )
        except APIError as exc:
            raise ProfilePersistError(f"Erro ao criar na tabela Usuarios: {exc.message}") from exc

        result = self.identity.sign_up(email, senha, {"nome": nome, "role": BOOTSTRAP_ROLE})
        if result.identity is None:
            logger.error("Bootstrap sign-up failed, removing profile %s: %s", profile.id, result.message)
            self.profiles.delete(db, profile.id)
            raise IdentityCreationError(f"Erro ao criar conta Auth: {result.message}")

        return self.profiles.update(db, profile.id, {"auth_uid": result.identity.id}) or profile

    def check_email(self, db: Client, email: str) -> UserProfile | None:
        """Return the profile holding this email, if any."""
        if not email or not email.strip():
            raise InvalidUserDataError("E-mail é obrigatório.")
        return self.profiles.get_by_email(db, email.strip().lower())

    def registered_emails(self, db: Client) -> list[str]:
        return sorted(self.profiles.list_emails(db))

    def find_orphans(self, db: Client) -> list[Identity]:
        """
        Identities with no profile, matched by auth_uid or by email.

        These are what make a sign-up fail with "already registered" while
        the user is missing from the user list.
        """
        uids = self.profiles.list_auth_uids(db)
        emails = self.profiles.list_emails(db)
        return [
            identity
            for identity in self.identity.list_identities()
            if identity.id not in uids
            and (identity.email or "").lower() not in emails
        ]

    def purge_orphans(self, db: Client) -> list[Identity]:
        """Delete every orphaned identity; returns the ones removed."""
        removed: list[Identity] = []
        for identity in self.find_orphans(db):
            self.identity.delete_identity(identity.id)
            logger.info("Deleted orphaned identity %s (%s)", identity.id, identity.email)
            removed.append(identity)
        return removed
