import os

from supabase import create_client, Client

SUPABASE_URL = os.environ.get("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

SESSIONS_TABLE = os.environ.get("SUPABASE_SESSIONS_TABLE", "swing_sessions")
BASELINES_TABLE = os.environ.get("SUPABASE_BASELINES_TABLE", "ideal_baselines")

_client: Client | None = None


def is_configured() -> bool:
    """True if Supabase credentials are present in the environment."""
    return bool(os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY"))


def get_client() -> Client:
    """Get or create the Supabase client (singleton)."""
    global _client
    if _client is None:
        url = os.environ.get("SUPABASE_URL", SUPABASE_URL)
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", SUPABASE_SERVICE_ROLE_KEY)
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _client = create_client(url, key)
    return _client


def reset_client() -> None:
    """Drop the cached client so the next get_client() re-reads the environment."""
    global _client
    _client = None
