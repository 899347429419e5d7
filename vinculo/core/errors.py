from fastapi import HTTPException, status


class VinculoError(HTTPException):
    """
    Base class for user lifecycle and login failures.

    Subclasses carry a fixed HTTP status and a stable `kind` string so
    routers can let them propagate (FastAPI renders HTTPException) while the
    CLI and tests can branch on the kind.
    """

    kind: str = "Error"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code_default, detail=detail)

    def __str__(self) -> str:
        return self.detail


class InvalidUserDataError(VinculoError):
    """Malformed email or too short password; raised before any remote call."""

    kind = "ValidationError"
    status_code_default = 422


class DuplicateEmailError(VinculoError):
    kind = "DuplicateEmail"
    status_code_default = status.HTTP_409_CONFLICT


class IdentityCreationError(VinculoError):
    kind = "IdentityCreationFailed"
    status_code_default = status.HTTP_502_BAD_GATEWAY


class ProfilePersistError(VinculoError):
    kind = "ProfilePersistFailed"
    status_code_default = status.HTTP_502_BAD_GATEWAY


class ProfileNotFoundError(VinculoError):
    kind = "ProfileNotFound"
    status_code_default = status.HTTP_404_NOT_FOUND


class WrongPasswordError(VinculoError):
    kind = "WrongPassword"
    status_code_default = status.HTTP_401_UNAUTHORIZED


class UnknownAccountError(VinculoError):
    kind = "UnknownAccount"
    status_code_default = status.HTTP_401_UNAUTHORIZED


class LoginFailedError(VinculoError):
    """Any other provider refusal; detail is the provider's message."""

    kind = "LoginFailed"
    status_code_default = status.HTTP_401_UNAUTHORIZED


class OrphanedIdentityError(VinculoError):
    """Identity authenticated but no profile references it."""

    kind = "OrphanedIdentity"
    status_code_default = status.HTTP_403_FORBIDDEN


class InactiveAccountError(VinculoError):
    kind = "InactiveAccount"
    status_code_default = status.HTTP_403_FORBIDDEN


class BootstrapRefusedError(VinculoError):
    """First-admin bootstrap attempted on a non-empty installation."""

    kind = "BootstrapRefused"
    status_code_default = status.HTTP_409_CONFLICT
