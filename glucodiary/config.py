"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote backend (Supabase). Both must be set to enable the remote store.
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Local store
    local_database_url: str = "sqlite+aiosqlite:///./glucodiary.db"
    local_session_days: int = 7

    # Logging
    log_format: str = "text"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "glucodiary"

    # Remote timing
    auth_lookup_timeout_seconds: float = 5.0
    remote_write_settle_seconds: float = 0.5  # read-after-write lag on insert

    # Testing
    testing: bool = False

    @property
    def remote_enabled(self) -> bool:
        """True when both backend URL and public key are configured."""
        return bool(self.supabase_url.strip() and self.supabase_anon_key.strip())


settings = Settings()
