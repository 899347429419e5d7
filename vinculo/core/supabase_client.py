from functools import lru_cache
from supabase import create_client, Client, ClientOptions

from vinculo.core.config import get_settings

settings = get_settings()


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - table reads/writes when no service role key is configured

    Note: This client still respects RLS and must never sign in.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - table reads/writes that bypass RLS
      - admin Auth operations (delete_user, list_users)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def isolated_auth_client() -> Client:
    """
    Create a throwaway Supabase client for a single sign-up or sign-in.

    Not cached: every call returns a client with its own in-memory session,
    so signing a new user up (or a user in) never replaces the session held
    by any other client in this process.
    """
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        options=ClientOptions(
            persist_session=False,
            auto_refresh_token=False,
        ),
    )
