"""Supabase database connection management."""

from functools import lru_cache

from supabase import Client, create_client

from src.gatekeeper.config import settings


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """
    Get Supabase admin client with service role key (singleton pattern).

    The users and login history tables are written server-side only, after
    the token has been verified, so the service role client is used.

    Returns:
        Configured Supabase client with service role key (bypasses RLS)

    Example:
        >>> client = get_supabase_admin_client()
        >>> response = client.table("users").select("*").limit(1).execute()
    """
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
