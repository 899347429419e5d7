import logging
import re
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from vinculo.core.config import get_settings
from vinculo.core.errors import (
    DuplicateEmailError,
    IdentityCreationError,
    InvalidUserDataError,
    ProfileNotFoundError,
    ProfilePersistError,
)
from vinculo.core.identity import AuthFailure, IdentityProvider
from vinculo.models.teacher import AVAILABILITY_TABLE, DETACHED_ON_DELETE
from vinculo.models.user import PROFESSIONAL_ROLE, STATUS_ACTIVE, UserProfile
from vinculo.repositories.note_repo import NoteRepository, TABLE as NOTES_TABLE
from vinculo.repositories.teacher_repo import TeacherRepository, TABLE as TEACHER_TABLE
from vinculo.repositories.user_repo import ProfileRepository, TABLE as PROFILE_TABLE
from vinculo.schemas.user import (
    CascadeStep,
    DeletionReport,
    UserCreate,
    UserCreated,
    UserRead,
    UserStatusUpdate,
    UserUpdate,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str | None) -> str:
    """
    Trim + lowercase an email and check its shape.

    Raises:
        InvalidUserDataError: if the email is missing or malformed.
    """
    if not email or not isinstance(email, str):
        raise InvalidUserDataError("E-mail é obrigatório.")
    clean = email.strip().lower()
    if not EMAIL_RE.match(clean):
        raise InvalidUserDataError(
            f'Formato de e-mail inválido: "{clean}". Use o formato: nome@dominio.com'
        )
    return clean


def validate_password(senha: str | None) -> None:
    if not senha or len(senha) < MIN_PASSWORD_LENGTH:
        raise InvalidUserDataError(
            f"A senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres."
        )


class UserService:
    """
    Business logic for the user lifecycle.

    A user spans two systems with no shared transaction: the Supabase Auth
    identity and the "Usuarios" row (plus a teacher link and dependent rows
    for professionals). Every step either checks for existing state first
    or is safe to repeat, so a half-finished creation can be completed by
    running it again.

    Responsibilities:
      - validate input before any remote call
      - create identity + profile (+ teacher link), reconciling with rows
        pre-created by the auth trigger
      - update / activate / deactivate profiles
      - cascade deletes over dependent tables and report each step
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        teachers: TeacherRepository,
        notes: NoteRepository,
        identity: IdentityProvider,
    ):
        self.profiles = profiles
        self.teachers = teachers
        self.notes = notes
        self.identity = identity

    # ----- Reads -----

    def list_users(self, db: Client) -> list[UserProfile]:
        return self.profiles.list(db)

    def get_user(self, db: Client, profile_id: int) -> UserProfile:
        """
        Raises:
            ProfileNotFoundError: if no profile has this id.
        """
        try:
            profile = self.profiles.get_by_id(db, profile_id)
        except APIError as exc:
            raise ProfilePersistError(
                f"Erro ao consultar usuário: {exc.message}"
            ) from exc
        if profile is None:
            raise ProfileNotFoundError("Usuário não encontrado.")
        return profile

    # ----- Create -----

    def create_user(self, db: Client, payload: UserCreate) -> UserCreated:
        """
        Create an auth identity and its profile.

        Steps:
          1. Validate and normalize email / password.
          2. Reject emails that already have a profile (no identity call).
          3. Sign the identity up on an isolated client.
          4. Classify the provider's answer.
          5. Update the trigger-created profile, or insert one.
          6. Professionals with a school get a teacher link (best effort).
        """
        email = normalize_email(payload.email)
        validate_password(payload.senha)

        try:
            existing = self.profiles.get_by_email(db, email)
        except APIError as exc:
            raise ProfilePersistError(
                f"Erro ao verificar e-mail: {exc.message}"
            ) from exc
        if existing is not None:
            raise DuplicateEmailError(
                f"Este e-mail já está cadastrado para o usuário: {existing.nome}"
            )

        result = self.identity.sign_up(
            email,
            payload.senha,
            {"nome": payload.nome, "role": payload.role},
        )
        if result.failure == AuthFailure.ALREADY_REGISTERED:
            raise DuplicateEmailError(
                "Este e-mail já está sendo utilizado por outro usuário no sistema."
            )
        if result.failure == AuthFailure.DATABASE_ERROR and result.identity is not None:
            # The auth hook failed after the identity was stored; the
            # profile is written below, so the user is still usable.
            logger.warning(
                "Auth trigger failed for %s but identity %s exists; continuing",
                email,
                result.identity.id,
            )
        elif result.failure is not None or result.identity is None:
            raise IdentityCreationError(
                f"Erro ao criar conta: {result.message or 'resposta vazia do provedor'}"
            )

        identity = result.identity
        values = {
            "auth_uid": identity.id,
            "nome": payload.nome,
            "role": payload.role,
            "avatar": payload.avatar,
            "status": STATUS_ACTIVE,
            "plataforma_id": payload.plataforma_id,
        }
        profile = self._persist_profile(db, email, identity.id, values)

        warnings: list[str] = []
        if payload.role == PROFESSIONAL_ROLE and payload.escola_id:
            warning = self._link_teacher(db, profile, payload)
            if warning:
                warnings.append(warning)

        logger.info("Created user %s (profile %s, identity %s)", email, profile.id, identity.id)
        return UserCreated(
            identity_id=identity.id,
            profile=UserRead.model_validate(profile, from_attributes=True),
            warnings=warnings,
        )

    def _persist_profile(
        self,
        db: Client,
        email: str,
        identity_id: str,
        values: dict[str, Any],
    ) -> UserProfile:
        """Merge into a trigger-created row, or insert a new one."""
        try:
            pre_created = self.profiles.get_by_email(db, email)
        except APIError as exc:
            raise ProfilePersistError(
                f"Erro ao salvar perfil do usuário: {exc.message}"
            ) from exc

        if pre_created is not None:
            try:
                profile = self.profiles.update(db, pre_created.id, values)
            except APIError as exc:
                logger.error("Failed to update trigger-created profile %s: %s", pre_created.id, exc.message)
                raise ProfilePersistError(
                    f"Erro ao atualizar perfil do usuário: {exc.message}"
                ) from exc
            return profile or pre_created

        try:
            return self.profiles.create(db, {**values, "email": email})
        except APIError as exc:
            logger.error("Failed to insert profile for %s: %s", email, exc.message)
            self._compensate_identity(identity_id)
            raise ProfilePersistError(
                f"Erro ao salvar perfil do usuário: {exc.message}"
            ) from exc

    def _compensate_identity(self, identity_id: str) -> None:
        """Delete an identity whose profile could not be written."""
        settings = get_settings()
        if not (settings.COMPENSATE_FAILED_SIGNUPS and settings.SUPABASE_SERVICE_ROLE_KEY):
            logger.warning("Identity %s left without profile (no compensation configured)", identity_id)
            return
        try:
            self.identity.delete_identity(identity_id)
            logger.info("Deleted identity %s after failed profile insert", identity_id)
        except Exception as exc:
            logger.error("Could not delete orphaned identity %s: %s", identity_id, exc)

    def _link_teacher(self, db: Client, profile: UserProfile, payload: UserCreate) -> str | None:
        """Create the teacher link; returns a warning instead of raising."""
        settings = get_settings()
        try:
            self.teachers.create(
                db,
                {
                    "usuario_id": profile.id,
                    "nome": payload.nome,
                    "email": profile.email,
                    "escola_id": payload.escola_id,
                    "especialidade": settings.DEFAULT_TEACHER_SPECIALTY,
                    "plataforma_id": payload.plataforma_id,
                },
            )
        except APIError as exc:
            logger.warning("Teacher link for profile %s failed: %s", profile.id, exc.message)
            return f"Usuário criado, mas o vínculo com a escola falhou: {exc.message}"
        return None

    # ----- Update -----

    def update_user(self, db: Client, profile_id: int, payload: UserUpdate) -> bool:
        """
        Partial update of name / role / avatar.

        For professionals, a supplied escola_id moves the existing teacher
        link; no link is created here.
        """
        self.get_user(db, profile_id)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        escola_id = changes.pop("escola_id", None)

        if changes:
            try:
                self.profiles.update(db, profile_id, changes)
            except APIError as exc:
                raise ProfilePersistError(
                    f"Erro ao atualizar usuário: {exc.message}"
                ) from exc

        if payload.role == PROFESSIONAL_ROLE and escola_id:
            try:
                self.teachers.update_school(db, profile_id, escola_id)
            except APIError as exc:
                raise ProfilePersistError(
                    f"Erro ao atualizar escola do professor: {exc.message}"
                ) from exc

        return True

    def set_status(self, db: Client, profile_id: int, payload: UserStatusUpdate) -> UserProfile:
        """Activate or deactivate a profile (admin only)."""
        self.get_user(db, profile_id)
        try:
            profile = self.profiles.update(db, profile_id, {"status": payload.status})
        except APIError as exc:
            raise ProfilePersistError(
                f"Erro ao atualizar status: {exc.message}"
            ) from exc
        if profile is None:
            raise ProfileNotFoundError("Usuário não encontrado.")
        return profile

    # ----- Delete -----

    def delete_user(self, db: Client, profile_id: int) -> DeletionReport:
        """
        Delete a profile and resolve everything that points at it.

        Order:
          1. Teacher link (if any): delete availability, detach classes,
             lessons, PEI reports and evaluations, delete the link.
          2. Delete the user's notes.
          3. Delete the profile. Only this step raises.

        Steps 1-2 are best effort; their outcomes end up in the report.
        Deleting an id that is already gone returns a report with
        profile_deleted=False.
        """
        report = DeletionReport(profile_id=profile_id)

        try:
            profile = self.profiles.get_by_id(db, profile_id)
        except APIError as exc:
            logger.warning("Profile lookup before delete failed for %s: %s", profile_id, exc.message)
            profile = None

        teacher = self._run_lookup(lambda: self.teachers.get_by_user_id(db, profile_id), report)
        if teacher is not None:
            report.teacher_id = teacher.id
            self._run_step(
                report, AVAILABILITY_TABLE, "delete",
                lambda: self.teachers.delete_dependents(db, AVAILABILITY_TABLE, teacher.id),
            )
            for table in DETACHED_ON_DELETE:
                self._run_step(
                    report, table, "detach",
                    lambda t=table: self.teachers.detach_dependents(db, t, teacher.id),
                )
            self._run_step(
                report, TEACHER_TABLE, "delete",
                lambda: self.teachers.delete(db, teacher.id),
            )

        self._run_step(
            report, NOTES_TABLE, "delete",
            lambda: self.notes.delete_for_user(db, profile_id),
        )

        try:
            deleted = self.profiles.delete(db, profile_id)
        except APIError as exc:
            logger.error("Failed to delete profile %s: %s", profile_id, exc.message)
            raise ProfilePersistError(
                f"Erro ao excluir usuário: {exc.message}"
            ) from exc
        report.steps.append(CascadeStep(table=PROFILE_TABLE, action="delete", affected=deleted))
        report.profile_deleted = deleted > 0

        settings = get_settings()
        if (
            report.profile_deleted
            and settings.DELETE_AUTH_IDENTITY_ON_USER_DELETE
            and profile is not None
            and profile.auth_uid
        ):
            try:
                self.identity.delete_identity(profile.auth_uid)
                report.identity_deleted = True
            except Exception as exc:
                logger.warning("Identity %s of deleted profile %s kept: %s", profile.auth_uid, profile_id, exc)

        report.partial = any(step.error for step in report.steps)
        if report.partial:
            logger.warning(
                "Profile %s deleted with failed cleanup steps: %s",
                profile_id,
                [f"{s.action} {s.table}" for s in report.steps if s.error],
            )
        return report

    def _run_lookup(self, fn, report: DeletionReport):
        try:
            return fn()
        except APIError as exc:
            report.steps.append(
                CascadeStep(table=TEACHER_TABLE, action="lookup", error=exc.message)
            )
            return None

    def _run_step(self, report: DeletionReport, table: str, action: str, fn) -> None:
        try:
            affected = fn()
        except APIError as exc:
            logger.warning("Cleanup step %s %s failed: %s", action, table, exc.message)
            report.steps.append(CascadeStep(table=table, action=action, error=exc.message))
            return
        report.steps.append(CascadeStep(table=table, action=action, affected=affected))
