"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class CacheBackend(str, Enum):
    """Where aggregate statistics are cached."""
    MEMORY = "memory"
    REDIS = "redis"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Uses Pydantic for configuration validation, preventing
    common security issues like wildcard CORS.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./foldsnap.db",
        description="Database connection URL"
    )
    # Connection pool tuning (ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled (prevents stale connections)"
    )

    # Aggregate cache
    # CACHE_BACKEND=memory is only correct for a single worker process; any
    # multi-worker deployment must point every worker at the same Redis.
    cache_backend: CacheBackend = Field(
        default=CacheBackend.MEMORY,
        description="Cache backend for folder size aggregates (memory/redis)"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (used when cache_backend=redis)"
    )
    cache_prefix: str = Field(
        default="foldsnap:",
        description="Prefix prepended to every cache key"
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        description="Upper bound on how long an aggregate survives without invalidation"
    )
    worker_count: int = Field(
        default=1,
        description="Number of worker processes serving the API"
    )

    # Authentication
    # AUTH_ENABLED: when False, every request acts as an anonymous admin (dev mode).
    jwt_secret_key: str = Field(
        default="dev-insecure-key-change-me",
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(
        default=False,
        description="Enable JWT authentication (False for development)"
    )

    # Media listing
    media_per_page_default: int = Field(
        default=40,
        description="Page size used when the client does not send per_page"
    )
    media_per_page_max: int = Field(
        default=100,
        description="Largest page size a client may request"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    def config_warnings(self) -> List[str]:
        """Return human-readable problems with the current configuration."""
        problems: list[str] = []

        if self.jwt_secret_key == "dev-insecure-key-change-me":
            problems.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        if not self.auth_enabled:
            problems.append(
                "AUTH_ENABLED is false. "
                "Authentication must be enabled in production."
            )

        return problems

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure defaults.
        In development, returns and lets main.py log warnings.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors = self.config_warnings()

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
            )

    @property
    def cache_is_process_local(self) -> bool:
        return self.cache_backend == CacheBackend.MEMORY

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
