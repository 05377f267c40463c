"""Application configuration."""
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8080
    app_debug: bool = True
    app_version: str = "1.0.0"
    log_level: str = "DEBUG"

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./smashqueue.sqlite",
        description="Database connection URL (postgresql+asyncpg://... in production)",
    )
    db_pool_size: int = Field(
        default=20,
        description="DB connection pool size (ignored for SQLite)",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max overflow connections (ignored for SQLite)",
    )

    # Redis (optional, used for state-change notifications and rate limiting)
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL; notifications fall back to logging when unset",
    )
    redis_socket_timeout: float = 5.0
    notify_channel: str = Field(
        default="smashqueue:events",
        description="Redis pub/sub channel for queue/match change events",
    )

    # JWT (tokens are issued by the external auth service)
    jwt_secret_key: str = Field(
        default="smashqueue-dev-signing-key-0f3c9a7b2e64d815",
        description="JWT signing key (minimum 32 characters)",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    # Sentry
    sentry_dsn: str | None = None
    sentry_traces_sample_rate: float = 0.05

    # Metrics
    metrics_enabled: bool = True

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Courts & queue policy
    courts: str = Field(
        default="Court 1,Court 2,Court 3,Court 4",
        description="Comma-separated fixed court set",
    )
    average_match_minutes: int = Field(
        default=5,
        ge=1,
        description="Minutes per queue position used by the wait estimate",
    )
    call_next_default: int = Field(
        default=4,
        ge=1,
        description="Players called per CallNext (doubles = 4)",
    )
    currently_playing_limit: int = 8

    # Listing
    admin_page_size_default: int = 20
    admin_page_size_max: int = 100
    completed_matches_limit_default: int = 50
    history_limit_default: int = 20

    # Transient storage errors (reads only)
    read_retry_attempts: int = Field(default=3, ge=1)
    read_retry_max_wait: float = 2.0

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate JWT secret key length."""
        if len(v) < 32:
            raise ValueError(
                "jwt_secret_key must be at least 32 characters long"
            )
        return v

    @field_validator("courts")
    @classmethod
    def validate_courts(cls, v: str) -> str:
        """Require at least one court."""
        if not [c for c in v.split(",") if c.strip()]:
            raise ValueError("courts must list at least one court")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.app_env == "production":
            if self.app_debug:
                raise ValueError(
                    "app_debug must be False in production environment"
                )

            origins = [o.strip() for o in self.cors_origins.split(",")]
            if "*" in origins:
                raise ValueError(
                    "CORS wildcard '*' is not allowed in production environment. "
                    "Specify explicit allowed origins."
                )

            if self.log_level == "DEBUG":
                import warnings
                warnings.warn(
                    "DEBUG log level in production may expose sensitive information"
                )

        return self

    @property
    def court_list(self) -> list[str]:
        """Courts in configured order."""
        return [c.strip() for c in self.courts.split(",") if c.strip()]

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
