"""Supabase client creation and session lookup."""

from supabase import AsyncClient, acreate_client

from glucodiary.config import Settings
from glucodiary.logging_config import get_logger

logger = get_logger(__name__)


async def create_supabase_client(config: Settings) -> AsyncClient | None:
    """Create the async Supabase client, or None if not configured.

    Args:
        config: Application settings with URL and public key

    Returns:
        AsyncClient, or None when the remote backend is not configured
    """
    if not config.remote_enabled:
        logger.warning(
            "Supabase not configured, using local storage only",
            url_configured=bool(config.supabase_url),
            key_configured=bool(config.supabase_anon_key),
        )
        return None

    client = await acreate_client(config.supabase_url, config.supabase_anon_key)
    logger.info("Supabase configured", url=config.supabase_url)
    return client


class SupabaseSessionProvider:
    """Resolves the signed-in user from the Supabase auth client."""

    def __init__(self, client: AsyncClient):
        self._client = client

    async def get_current_user_id(self) -> str | None:
        """User id from the locally cached session, if any."""
        session = await self._client.auth.get_session()
        if session is None or session.user is None:
            return None
        return str(session.user.id)

    async def resolve_current_user(self) -> str | None:
        """User id confirmed by the auth server.

        Raises:
            gotrue AuthError: If the server rejects the stored token.
        """
        response = await self._client.auth.get_user()
        if response is None or response.user is None:
            return None
        return str(response.user.id)
