"""Application wiring.

Builds the stores and repositories from settings. The backend choice is
made once here and injected; nothing downstream re-reads settings.
"""

from dataclasses import dataclass

from glucodiary.config import Settings, settings
from glucodiary.database import (
    close_database,
    configure_engine,
    get_session_maker,
    init_local_schema,
)
from glucodiary.integrations.supabase_auth import (
    SupabaseSessionProvider,
    create_supabase_client,
)
from glucodiary.integrations.supabase_store import SupabaseStore
from glucodiary.logging_config import get_logger, setup_logging
from glucodiary.services.glucose_repository import (
    GlucoseReadingRepository,
    RepositoryConfig,
)
from glucodiary.services.local_auth import LocalAuthService
from glucodiary.services.local_store import LocalStore
from glucodiary.services.reminders_repository import RemindersRepository

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Everything the presentation layer talks to."""

    readings: GlucoseReadingRepository
    reminders: RemindersRepository
    local_auth: LocalAuthService
    repository_config: RepositoryConfig


async def build_repository_config(config: Settings) -> RepositoryConfig:
    """Create both stores; the remote one only if credentials are set."""
    configure_engine(config.local_database_url, testing=config.testing)
    await init_local_schema()
    local = LocalStore(get_session_maker())

    remote = None
    client = await create_supabase_client(config)
    if client is not None:
        remote = SupabaseStore(
            client,
            SupabaseSessionProvider(client),
            lookup_timeout=config.auth_lookup_timeout_seconds,
        )

    return RepositoryConfig(
        remote_enabled=remote is not None,
        local=local,
        remote=remote,
        settle_delay_seconds=config.remote_write_settle_seconds,
    )


async def startup(config: Settings = settings) -> AppContext:
    """Configure logging, open the stores and build the repositories."""
    setup_logging(
        log_format=config.log_format,
        log_level=config.log_level,
        service_name=config.service_name,
    )

    repository_config = await build_repository_config(config)
    context = AppContext(
        readings=GlucoseReadingRepository(repository_config),
        reminders=RemindersRepository(repository_config),
        local_auth=LocalAuthService(repository_config.local),
        repository_config=repository_config,
    )
    logger.info(
        "glucodiary started",
        remote_enabled=repository_config.remote_enabled,
    )
    return context


async def shutdown() -> None:
    """Release the local database engine."""
    logger.info("Shutting down glucodiary...")
    await close_database()
