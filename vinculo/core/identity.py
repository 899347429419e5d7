"""
Adapter around the Supabase Auth API.

Supabase reports failures as exceptions carrying a human readable message
and, on recent GoTrue versions, a machine readable `code`. Callers of this
module never look at either: every failure is mapped to an AuthFailure
constant here, preferring the code and falling back to the message text for
servers that do not send one.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from supabase import AuthError, Client

from vinculo.core.supabase_client import isolated_auth_client, supabase_admin

logger = logging.getLogger(__name__)


class AuthFailure:
    ALREADY_REGISTERED = "already_registered"
    DATABASE_ERROR = "database_error"
    INVALID_CREDENTIALS = "invalid_credentials"
    OTHER = "other"


# GoTrue error codes
ERROR_CODES: dict[str, str] = {
    "user_already_exists": AuthFailure.ALREADY_REGISTERED,
    "email_exists": AuthFailure.ALREADY_REGISTERED,
    "invalid_credentials": AuthFailure.INVALID_CREDENTIALS,
    "unexpected_failure": AuthFailure.DATABASE_ERROR,
}

# Fallback for servers that only send a message; checked in order.
ERROR_MESSAGES: list[tuple[str, str]] = [
    ("already registered", AuthFailure.ALREADY_REGISTERED),
    ("database error", AuthFailure.DATABASE_ERROR),
    ("invalid login credentials", AuthFailure.INVALID_CREDENTIALS),
]


def classify_auth_error(code: str | None, message: str | None) -> str:
    """Map a provider error to an AuthFailure constant."""
    if code and code in ERROR_CODES:
        return ERROR_CODES[code]
    text = (message or "").lower()
    for needle, failure in ERROR_MESSAGES:
        if needle in text:
            return failure
    return AuthFailure.OTHER


@dataclass
class Identity:
    """Supabase auth user, as far as this system cares."""

    id: str
    email: str | None = None
    confirmed: bool = False


@dataclass
class AuthResult:
    """
    Outcome of a sign-up or sign-in.

    `identity` may be set even when `failure` is: GoTrue can create the
    user and still report that its post-creation hook failed.
    `client` is the isolated client that holds the new session, kept so the
    caller can sign that exact session out again.
    """

    identity: Identity | None = None
    failure: str | None = None
    message: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    client: Any = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.failure is None and self.identity is not None


def _identity_from_user(user: Any) -> Identity | None:
    if user is None or not getattr(user, "id", None):
        return None
    return Identity(
        id=str(user.id),
        email=getattr(user, "email", None),
        confirmed=getattr(user, "email_confirmed_at", None) is not None,
    )


def _failure_from_exc(exc: AuthError) -> AuthResult:
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    return AuthResult(
        failure=classify_auth_error(code, message),
        message=message,
    )


class IdentityProvider:
    """
    Identity provider client.

    Responsibilities:
      - sign users up / in through a fresh isolated client per call
      - sign out the session opened by a previous sign-in
      - admin operations (delete, list) through the service role client
    """

    def __init__(
        self,
        client_factory: Callable[[], Client] = isolated_auth_client,
        admin_factory: Callable[[], Client] = supabase_admin,
    ):
        self.client_factory = client_factory
        self.admin_factory = admin_factory

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthResult:
        client = self.client_factory()
        try:
            res = client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata},
                }
            )
        except AuthError as exc:
            logger.error("Sign-up failed for %s: %s", email, exc)
            result = _failure_from_exc(exc)
            result.client = client
            return result

        return AuthResult(identity=_identity_from_user(res.user), client=client)

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        client = self.client_factory()
        try:
            res = client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            result = _failure_from_exc(exc)
            result.client = client
            return result

        session = res.session
        return AuthResult(
            identity=_identity_from_user(res.user),
            access_token=getattr(session, "access_token", None),
            refresh_token=getattr(session, "refresh_token", None),
            client=client,
        )

    def sign_out(self, result: AuthResult) -> None:
        """Terminate the session opened by `result`, if any."""
        if result.client is None:
            return
        result.client.auth.sign_out()

    # ----- Admin operations (service role) -----

    def delete_identity(self, identity_id: str) -> None:
        self.admin_factory().auth.admin.delete_user(identity_id)

    def list_identities(self, per_page: int = 100) -> list[Identity]:
        """Return every auth user, walking the admin API page by page."""
        admin = self.admin_factory()
        identities: list[Identity] = []
        page = 1
        while True:
            users = admin.auth.admin.list_users(page=page, per_page=per_page)
            for user in users:
                identity = _identity_from_user(user)
                if identity is not None:
                    identities.append(identity)
            if len(users) < per_page:
                break
            page += 1
        return identities
