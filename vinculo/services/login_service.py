import logging

from postgrest.exceptions import APIError
from supabase import Client

from vinculo.core.config import get_settings
from vinculo.core.errors import (
    InactiveAccountError,
    LoginFailedError,
    OrphanedIdentityError,
    UnknownAccountError,
    WrongPasswordError,
)
from vinculo.core.identity import AuthFailure, AuthResult, IdentityProvider
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.schemas.auth import LoginResponse
from vinculo.schemas.user import UserRead

logger = logging.getLogger(__name__)


class LoginService:
    """
    Login flow: authenticate, then authorize against the profile table.

    States:
      authenticate -> (invalid credentials) -> WrongPassword | UnknownAccount
                   -> (other provider error) -> LoginFailed
                   -> authorize -> (no profile) -> sign out, OrphanedIdentity
                                -> (not Ativo)  -> sign out, InactiveAccount
                                -> authenticated

    Both authorize failures sign the fresh session out so no authenticated
    but unauthorized session survives the attempt.
    """

    def __init__(self, profiles: ProfileRepository, identity: IdentityProvider):
        self.profiles = profiles
        self.identity = identity

    def login(self, db: Client, email: str, password: str) -> LoginResponse:
        settings = get_settings()
        email = email.strip()

        result = self.identity.sign_in_with_password(email, password)
        if result.failure is not None or result.identity is None:
            self._reject_credentials(db, email, result)

        try:
            profile = self.profiles.get_by_auth_uid(db, result.identity.id)
        except APIError as exc:
            logger.error("Profile lookup failed for identity %s: %s", result.identity.id, exc.message)
            profile = None

        if profile is None:
            logger.warning("Identity %s (%s) has no profile; signing out", result.identity.id, email)
            self._force_sign_out(result)
            raise OrphanedIdentityError(
                "Conta não configurada corretamente. Entre em contato com o "
                f"suporte para solicitar acesso: {settings.CONTACT_HINT}"
            )

        if not profile.is_active:
            logger.info("Inactive profile %s tried to log in; signing out", profile.id)
            self._force_sign_out(result)
            raise InactiveAccountError(
                "Sua conta está inativa. Entre em contato com o administrador "
                "para reativar seu acesso."
            )

        logger.info("Login granted for profile %s", profile.id)
        return LoginResponse(
            access_token=result.access_token or "",
            refresh_token=result.refresh_token,
            profile=UserRead.model_validate(profile, from_attributes=True),
        )

    def _reject_credentials(self, db: Client, email: str, result: AuthResult) -> None:
        """Turn a failed authentication into the matching error. Always raises."""
        if result.failure != AuthFailure.INVALID_CREDENTIALS:
            raise LoginFailedError(result.message or "Falha na autenticação.")

        try:
            known = self.profiles.get_by_email(db, email.lower())
        except APIError as exc:
            logger.warning("Profile lookup after refused login failed: %s", exc.message)
            known = None
        if known is not None:
            raise WrongPasswordError("E-mail ou senha incorretos.")

        settings = get_settings()
        raise UnknownAccountError(
            "Esta conta não existe em nosso sistema. Entre em contato para "
            f"solicitar uma demonstração: {settings.CONTACT_HINT}"
        )

    def _force_sign_out(self, result: AuthResult) -> None:
        try:
            self.identity.sign_out(result)
        except Exception as exc:
            # The isolated client is discarded anyway; its tokens expire.
            logger.warning("Sign-out after refused login failed: %s", exc)
