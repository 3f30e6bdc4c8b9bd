"""Settings configuration"""
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Content generation settings read from the environment or .env"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False,
        validate_assignment=True
    )

    # Application
    app_name: str = Field(default="Content Generation Core", validation_alias="APP_NAME")
    version: str = "1.0.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # Remote generation service
    generation_api_url: str = Field(default="http://localhost:54321/functions/v1", validation_alias="GENERATION_API_URL")
    generation_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GENERATION_API_KEY")

    # Generation behaviour
    auto_retry: bool = Field(default=True, validation_alias="GENERATION_AUTO_RETRY")
    max_retries: int = Field(default=2, validation_alias="GENERATION_MAX_RETRIES", ge=0, le=10)
    timeout_ms: int = Field(default=10000, validation_alias="GENERATION_TIMEOUT_MS", gt=0)
    use_fallbacks: bool = Field(default=True, validation_alias="GENERATION_USE_FALLBACKS")
    enable_ab_testing: bool = Field(default=True, validation_alias="ENABLE_AB_TESTING")
    show_toasts: bool = Field(default=False, validation_alias="SHOW_TOASTS")

    # Cache
    cache_max_entries: int = Field(default=500, validation_alias="CACHE_MAX_ENTRIES", gt=0)
    cache_cleanup_interval_minutes: float = Field(
        default=60.0, validation_alias="CACHE_CLEANUP_INTERVAL_MINUTES", gt=0
    )

    @field_validator("log_format", mode="before")
    @classmethod
    def parse_log_format(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    # Properties
    @property
    def api_key(self) -> Optional[str]:
        return self.generation_api_key.get_secret_value() if self.generation_api_key else None
