from fastapi import APIRouter, Depends
from supabase import Client

from vinculo.core.identity import IdentityProvider
from vinculo.database import get_db
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.schemas.auth import LoginRequest, LoginResponse
from vinculo.services.login_service import LoginService

router = APIRouter(prefix="/auth", tags=["Auth"])

service = LoginService(ProfileRepository(), IdentityProvider())


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Client = Depends(get_db)):
    """
    Authenticate with email + password and check the profile.

    Errors (body carries `kind`):
      - 401 WrongPassword / UnknownAccount / LoginFailed
      - 403 OrphanedIdentity / InactiveAccount (session already signed out)
    """
    return service.login(db, payload.email, payload.password)
