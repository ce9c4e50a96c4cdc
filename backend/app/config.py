"""
Twinshot Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; `create_app()` may be handed a
       different `Settings` instance (tests do this).
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List

# Development-only signing key; startup logs an error when it is still in use.
DEFAULT_JWT_SECRET = "change-me-twinshot-development-secret"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development against an
    embedded SQLite database. Production deployments MUST override
    JWT_SECRET_KEY and should point STORAGE_ROOT at a persistent volume.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///path/to/file.db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./twinshot.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool settings only apply to server databases; SQLite uses SQLAlchemy's
    # default pool for its dialect.
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create missing tables during startup. Deployments that run
    # `alembic upgrade head` can turn this off.
    auto_create_schema: bool = Field(default=True)

    # ── Authentication ────────────────────────────────────────────────────
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="HMAC key used to sign access tokens",
    )
    jwt_algorithm: str = Field(default="HS256")

    # 7 days, matching the mobile client's session length
    access_token_expire_minutes: int = Field(default=10_080, ge=1, le=525_600)

    # Shortest accepted password at registration
    min_password_length: int = Field(default=6, ge=1, le=128)

    # ── File Storage ──────────────────────────────────────────────────────
    # Root directory for raw captures and composites, relative to backend CWD
    storage_root: str = Field(default="./uploads")

    # Maximum size of a single uploaded capture, in bytes (default 10MB)
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── Daily Prompt ──────────────────────────────────────────────────────
    default_daily_prompt: str = Field(default="Time to share your moment.")

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated list of allowed origins
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # JWT_SECRET_KEY and jwt_secret_key both work
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that security-critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises a single ValueError.
        """
        errors = []
        if not self.jwt_secret_key or self.jwt_secret_key == DEFAULT_JWT_SECRET:
            errors.append(
                "JWT_SECRET_KEY is not set. Tokens are signed with the "
                "development default and can be forged."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance imported throughout the application
settings = Settings()
