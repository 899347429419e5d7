from supabase import Client

from vinculo.core.config import get_settings
from vinculo.core.supabase_client import supabase_admin, supabase_public

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres access (via PostgREST)
#
# Tables live in the hosted project and are reached through the
# supabase client's table API, never through a direct connection.
#
# - service role key set : bypass RLS, backend owns authorization
# - anon key only        : RLS policies of the project apply
#
# The returned client is shared and must never be used to sign in;
# see isolated_auth_client() for that.
# ---------------------------------------------------------


def get_db() -> Client:
    """
    FastAPI dependency that returns the Supabase client used for table access.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(db: Client = Depends(get_db)):
            ...
    """
    if settings.SUPABASE_SERVICE_ROLE_KEY:
        return supabase_admin()
    return supabase_public()
