"""Runtime settings, read from ``API_PROBE_*`` environment variables or ``.env``."""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="API_PROBE_", env_file=".env", extra="ignore")

    # LLM
    llm_model: str = DEFAULT_MODEL

    # Execution
    request_timeout: float = 30.0
    max_concurrency: int | None = None

    # Verdict thresholds
    auto_pass_threshold: float = 0.8
    explicit_pass_threshold: float = 0.5

    # Fallback parameter synthesis, keyed by schema type
    param_defaults: dict[str, Any] = Field(
        default_factory=lambda: {"integer": 1, "string": "test", "boolean": True}
    )
    param_default_other: Any = "test"

    # Stores
    store_ttl_seconds: float | None = None

    # Server
    log_level: str = "INFO"
    cors_origins: str = "*"

    def get_cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
