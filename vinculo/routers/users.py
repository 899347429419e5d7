from fastapi import APIRouter, Depends, status
from supabase import Client

from vinculo.core.auth import get_current_profile, require_admin
from vinculo.core.identity import IdentityProvider
from vinculo.database import get_db
from vinculo.models.user import UserProfile
from vinculo.repositories.note_repo import NoteRepository
from vinculo.repositories.teacher_repo import TeacherRepository
from vinculo.repositories.user_repo import ProfileRepository
from vinculo.schemas.user import (
    DeletionReport,
    UserCreate,
    UserCreated,
    UserRead,
    UserStatusUpdate,
    UserUpdate,
)
from vinculo.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

service = UserService(
    ProfileRepository(),
    TeacherRepository(),
    NoteRepository(),
    IdentityProvider(),
)


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current: UserProfile = Depends(get_current_profile)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT and an active profile.
    """
    return current


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(db: Client = Depends(get_db)):
    """
    List all users ordered by name (admin only).
    """
    return service.list_users(db)


@router.get(
    "/{profile_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(profile_id: int, db: Client = Depends(get_db)):
    return service.get_user(db, profile_id)


@router.post(
    "",
    response_model=UserCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_user(payload: UserCreate, db: Client = Depends(get_db)):
    """
    Create a user: auth identity + profile (+ teacher link for
    professionals with a school).

    The identity is created on an isolated client, so the calling admin's
    session is untouched. A failed teacher link is reported in `warnings`
    rather than failing the request.
    """
    return service.create_user(db, payload)


@router.patch(
    "/{profile_id}",
    dependencies=[Depends(require_admin)],
)
def update_user(profile_id: int, payload: UserUpdate, db: Client = Depends(get_db)):
    """
    Partial update of name / role / avatar (admin only).

    For professionals, `escola_id` moves the existing teacher link.
    """
    return {"updated": service.update_user(db, profile_id, payload)}


@router.patch(
    "/{profile_id}/status",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def change_status(profile_id: int, payload: UserStatusUpdate, db: Client = Depends(get_db)):
    """
    Activate or deactivate a user (admin only).

    Inactive users are signed out again by the login flow.
    """
    return service.set_status(db, profile_id, payload)


@router.delete(
    "/{profile_id}",
    response_model=DeletionReport,
    dependencies=[Depends(require_admin)],
)
def delete_user(profile_id: int, db: Client = Depends(get_db)):
    """
    Delete a user and clean up the rows that reference it (admin only).

    The response lists every cleanup step; `partial` is true when the
    profile was removed but some dependent rows could not be cleaned.
    """
    return service.delete_user(db, profile_id)
