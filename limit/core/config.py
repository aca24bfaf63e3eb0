from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package settings loaded from environment variables.

    All settings can be configured via ``LIMIT_*`` environment variables
    or a .env file.
    """

    # Storage settings
    storage_backend: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "limit:"

    # Default accessor strategy for Cooldown and RateLimiter
    use_cache: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Validate the storage backend name."""
        v = v.strip().lower()
        if v not in ("memory", "redis"):
            raise ValueError("storage_backend must be 'memory' or 'redis'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    model_config = SettingsConfigDict(
        env_prefix="LIMIT_", env_file=".env", extra="ignore"
    )


# Global settings instance
settings = Settings()
