from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (admin Supabase client, maintenance CLI,
        identity compensation)
    """

    PROJECT_NAME: str = "Vinculo PEI API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Supabase config
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Shown to people who try to log in without an account
    CONTACT_HINT: str = "instagram.com/edututorpei"

    # Specialty stored on teacher links created with a new professional
    DEFAULT_TEACHER_SPECIALTY: str = "Educação Regular"

    # Delete the auth identity again when its profile row cannot be saved
    COMPENSATE_FAILED_SIGNUPS: bool = True

    # Remove the auth identity as the last step of a user deletion
    DELETE_AUTH_IDENTITY_ON_USER_DELETE: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
