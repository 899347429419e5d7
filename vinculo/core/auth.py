from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from supabase import Client

from vinculo.core.config import get_settings
from vinculo.database import get_db
from vinculo.models.user import UserProfile
from vinculo.repositories.user_repo import ProfileRepository

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header is turned into our
#   own 401 below instead of FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)

profiles = ProfileRepository()


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Args:
        token: raw JWT from the Authorization header.

    Returns:
        Decoded JWT claims.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Client = Depends(get_db),
) -> UserProfile:
    """
    Resolve the current user's profile from a Supabase JWT.

    Flow:
      1. No Authorization header => 401.
      2. Decode JWT => extract 'sub' (auth user id).
      3. Find the profile whose auth_uid is 'sub'.
      4. Missing profile => 403. Profiles are never auto-provisioned here:
         an identity without a profile is a configuration error.
      5. Inactive profile => 403.

    Raises:
        HTTPException(401): missing / malformed token.
        HTTPException(403): orphaned identity or inactive account.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    profile = profiles.get_by_auth_uid(db, sub)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not configured for this system",
        )
    if not profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return profile


def require_admin(profile: UserProfile = Depends(get_current_profile)) -> UserProfile:
    """
    Enforce admin role.

    Route is accessible only if:
      - profile.role is "Admin" (or legacy "Administrador")

    Raises:
        HTTPException(403): if role is not admin.
    """
    if not profile.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return profile
