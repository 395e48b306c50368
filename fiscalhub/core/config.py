"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend, retry, storage and realtime options are
validated at load time.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment and .env.

    The anon key may be provided as BACKEND_ANON_KEY or BACKEND_PUBLISHABLE_KEY.
    """

    # App
    app_name: str = "fiscalhub"
    debug: bool = False

    # Backend Service (row CRUD, auth, functions, storage)
    backend_url: str = ""
    backend_anon_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("backend_anon_key", "backend_publishable_key"),
    )
    backend_timeout_seconds: float = 30.0

    # Retry: additional attempts after the first call; delay = base * 2^attempt + jitter
    retry_max_retries: int = 3
    retry_base_delay_seconds: float = 1.0

    # Storage: "local" (filesystem) or "remote" (Backend Service bucket)
    storage_backend: str = "local"
    storage_root: str = "./storage"
    storage_bucket: str = "fiscal-files"
    signed_url_expiry_seconds: int = 3600

    # Realtime change feed (Redis pub/sub)
    realtime_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    realtime_channel_prefix: str = "realtime:public"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def validate_retry_and_storage(self) -> "Settings":
        """Validate retry budget and storage backend.

        - retry_max_retries must be >= 0 and retry_base_delay_seconds > 0.
        - storage_backend must be 'local' or 'remote'; 'remote' needs BACKEND_URL.
        """
        if self.retry_max_retries < 0:
            raise ValueError("RETRY_MAX_RETRIES must be >= 0")
        if self.retry_base_delay_seconds <= 0:
            raise ValueError("RETRY_BASE_DELAY_SECONDS must be > 0")
        backend = self.storage_backend.lower()
        if backend not in ("local", "remote"):
            raise ValueError(
                f"storage_backend must be 'local' or 'remote', got: {self.storage_backend!r}"
            )
        if backend == "remote" and not self.backend_url:
            raise ValueError(
                "BACKEND_URL is required when storage_backend is 'remote'. "
                "Set in environment or .env file."
            )
        return self

    @property
    def rest_url(self) -> str:
        """Base URL for row CRUD endpoints."""
        return f"{self.backend_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        """Base URL for authentication endpoints."""
        return f"{self.backend_url.rstrip('/')}/auth/v1"

    @property
    def functions_url(self) -> str:
        """Base URL for privileged RPC functions."""
        return f"{self.backend_url.rstrip('/')}/functions/v1"

    @property
    def storage_url(self) -> str:
        """Base URL for blob storage endpoints."""
        return f"{self.backend_url.rstrip('/')}/storage/v1"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (loaded once per process)."""
    return Settings()
