import logging
from supabase import create_client, acreate_client, AsyncClient, Client, ClientOptions
from typing import Optional
from pricebook.config.settings import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """
    Process-wide Supabase clients.

    Table access and realtime run with the service_role key, so row level
    security does not apply to them and the API's capability checks decide
    what a caller may do. Sign-in and sign-up never run on these clients:
    a successful sign-in rewrites the client's Authorization header to the
    user's JWT, which would make every later query run as that user.
    """
    _client: Client = None
    _service_client: Client = None
    _auth_client: Client = None
    _async_client: AsyncClient = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Needed for auth admin calls."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        if cls._service_client is None and cls._client is None:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; data access falls back to the anon key")
        return cls._service_client or cls.get_client()

    @classmethod
    def get_auth_client(cls) -> Client:
        """Anon client reserved for GoTrue calls; whatever session a sign-in leaves on it is never used for queries."""
        if cls._auth_client is None:
            cls._auth_client = create_client(
                settings.supabase_url,
                settings.supabase_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False)
            )
        return cls._auth_client

    @classmethod
    async def get_async_client(cls) -> AsyncClient:
        """Async client; realtime channels are only available on it."""
        if cls._async_client is None:
            key = settings.supabase_service_role_key or settings.supabase_key
            cls._async_client = await acreate_client(settings.supabase_url, key)
        return cls._async_client

    @classmethod
    def has_service_role(cls) -> bool:
        return bool(settings.supabase_service_role_key)

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None
        cls._auth_client = None
        cls._async_client = None


def get_supabase() -> Client:
    """Data client for table queries (service_role)."""
    return SupabaseClient.get_service_client()


def get_auth_supabase() -> Client:
    """Client for sign-in, sign-up and token checks, never shared with table queries."""
    return SupabaseClient.get_auth_client()


def get_admin_supabase() -> Optional[Client]:
    """Service-role client for auth admin calls, or None when no service_role key is configured."""
    if not SupabaseClient.has_service_role():
        return None
    return SupabaseClient.get_service_client()
