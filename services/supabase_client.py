# services/supabase_client.py
from supabase import create_client, Client

from config import get_settings

_client: Client | None = None

def _error_msg() -> str:
    settings = get_settings()
    missing = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL (or SUPABASE_PROJECT_URL)")
    if not settings.supabase_key:
        missing.append("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY)")
    return "Supabase not configured. Set " + ", ".join(missing) + " env vars."

def get_client() -> Client:
    """Return a singleton Supabase client. Raises with a clear message if misconfigured."""
    global _client
    if _client is None:
        settings = get_settings()
        # Accept either name for URL and service-role key
        if not settings.supabase_url or not settings.supabase_key:
            raise RuntimeError(_error_msg())
        _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client
