"""
Service configuration from environment variables using Pydantic BaseSettings.

All configuration values are loaded from environment variables (or a local
.env file) at startup. No hardcoded URLs or credentials.

CHANGELOG:
- 2025-03-02: Add ADMIN_AUTH_KEY for the user verification endpoints
- 2025-02-20: Add LOG_LEVEL with validation against logging level names
- 2025-02-11: Initial creation

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Telemetry service settings loaded from environment variables.

    Attributes:
        DATABASE_URL: PostgreSQL connection string (asyncpg).
        REDIS_URL: Redis connection string.
        INGEST_AUTH_KEY: Shared secret expected in the ``auth-key`` header
            of ingest requests.
        ADMIN_AUTH_KEY: Shared secret expected in the ``auth-key`` header
            of user management requests.
        CACHE_TTL_S: Redis cache TTL in seconds for the latest snapshot.
        LOG_LEVEL: Root logging level name.
    """

    DATABASE_URL: str
    REDIS_URL: str
    INGEST_AUTH_KEY: str
    ADMIN_AUTH_KEY: str
    CACHE_TTL_S: int = 5
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("INGEST_AUTH_KEY", "ADMIN_AUTH_KEY")
    @classmethod
    def auth_key_must_not_be_empty(cls, v: str) -> str:
        """Reject empty shared secrets; an empty key would match a missing header."""
        if not v.strip():
            raise ValueError("auth keys must not be empty")
        return v

    @field_validator("CACHE_TTL_S")
    @classmethod
    def cache_ttl_must_be_positive(cls, v: int) -> int:
        """Validate cache TTL is at least 1 second."""
        if v < 1:
            raise ValueError("CACHE_TTL_S must be >= 1")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalize LOG_LEVEL to upper case and check it is a logging level."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {v!r}")
        return level


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Returns:
        Settings: Validated configuration from environment variables.
    """
    return Settings()
