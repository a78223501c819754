from supabase import create_client, Client
from stdntlab.config import settings


def is_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_key)


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not is_configured():
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client


def get_supabase() -> Client:
    """Request dependency; tests replace it through app.dependency_overrides"""
    return SupabaseClient.get_client()
