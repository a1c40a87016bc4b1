"""Reminder configuration repository.

Same remote-first, local-fallback policy as the reading repository,
without classification. The configuration is always saved whole.
"""

from glucodiary.core.exceptions import LocalStoreError
from glucodiary.core.fallback import with_fallback
from glucodiary.logging_config import get_logger
from glucodiary.schemas.reminders import RemindersConfig, default_reminders_config
from glucodiary.services.glucose_repository import RepositoryConfig, operation_scope

logger = get_logger(__name__)


class RemindersRepository:
    """Holds the current reminder configuration.

    Attributes:
        config: Loaded configuration, None until load_config completes
        loading: True while the latest issued load is in flight

    Each load and save takes a sequence number; a load only commits if
    nothing was issued after it.
    """

    def __init__(self, config: RepositoryConfig):
        self._config = config
        self._local = config.local
        self.config: RemindersConfig | None = None
        self.loading = False
        self._sequence = 0

    @property
    def use_remote(self) -> bool:
        return self._config.remote_enabled

    async def _fetch_saved(self) -> RemindersConfig | None:
        remote = self._config.remote
        result = await with_fallback(
            (lambda: remote.get_reminders_config()) if self.use_remote else None,
            self._local.get_reminders_config,
            operation="load_reminders",
        )
        if result.value is not None or not self.use_remote or result.used_fallback:
            return result.value

        # Remote has no row yet; a config saved offline may exist locally
        return await self._local.get_reminders_config()

    async def load_config(self) -> RemindersConfig:
        """Load the saved configuration, or the defaults if none is stored.

        Returns:
            The configuration this call loaded. It is kept in config only
            if no later load or save was issued meanwhile.
        """
        self._sequence += 1
        sequence = self._sequence
        self.loading = True
        with operation_scope("load_reminders"):
            try:
                saved = await self._fetch_saved()
            except LocalStoreError as e:
                logger.error("Failed to load reminder config, using defaults", error=str(e))
                saved = None
            finally:
                if sequence == self._sequence:
                    self.loading = False

        if saved is None:
            logger.info("No saved reminder config, using defaults")
            saved = default_reminders_config()

        if sequence != self._sequence:
            logger.debug(
                "Discarding stale reminder config load",
                sequence=sequence,
                latest=self._sequence,
            )
            return saved

        self.config = saved
        return saved

    async def save_config(self, config: RemindersConfig) -> None:
        """Save the full configuration, remote first.

        Raises:
            LocalStoreError: If the local fallback also failed.
        """
        # Loads still in flight must not overwrite what is saved here
        self._sequence += 1
        self.loading = False
        remote = self._config.remote
        with operation_scope("save_reminders"):
            result = await with_fallback(
                (lambda: remote.save_reminders_config(config)) if self.use_remote else None,
                lambda: self._local.save_reminders_config(config),
                operation="save_reminders",
            )
        self.config = config
        logger.info(
            "Saved reminder config",
            stored_remotely=self.use_remote and not result.used_fallback,
        )
