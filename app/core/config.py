"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
"""

import os
from enum import Enum

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for .env files in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "person-directory-api"
    app_log_level: str = "INFO"
    app_region: str = "local"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration
    otel_enabled: bool = False
    otel_service_name: str = "person-directory-api"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # Database - Runtime app user (used by FastAPI)
    database_url_app: str = "sqlite+aiosqlite:///./person_directory.db"

    # Database - Admin user (for schema setup and seeding)
    database_url_admin: str | None = None

    # Create missing tables on startup (local development only)
    db_auto_create: bool = False

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # File storage for person images
    file_upload_path: str = "uploads/images"
    file_base_url: str = "/api/files"
    file_allowed_extensions: str = ".jpg,.jpeg,.png,.gif"
    max_file_size_mb: int = 5

    # Localization
    default_locale: str = "en-US"
    supported_locales: str = "en-US"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def allowed_extensions_list(self) -> list[str]:
        """Parse allowed image extensions into a normalized list."""
        return [
            ext.strip().lower() if ext.strip().startswith(".") else f".{ext.strip().lower()}"
            for ext in self.file_allowed_extensions.split(",")
            if ext.strip()
        ]

    @property
    def supported_locales_list(self) -> list[str]:
        return [loc.strip() for loc in self.supported_locales.split(",") if loc.strip()]

    @property
    def async_url(self) -> str:
        """Database URL with an async driver selected.

        Plain ``postgresql://`` URLs are routed through asyncpg and plain
        ``sqlite://`` URLs through aiosqlite.
        """
        url = self.database_url_app
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @property
    def admin_async_url(self) -> str:
        url = self.database_url_admin or self.database_url_app
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_file_size_mb must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent unsafe configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            if not self.database_url_app.startswith("postgresql"):
                raise ValueError("DATABASE_URL_APP must use a postgresql scheme in production")

            if self.db_auto_create:
                raise ValueError("DB_AUTO_CREATE must not be enabled in production")

            # CORS must not allow localhost in production
            for origin in self.cors_origins_list:
                if "localhost" in origin or "127.0.0.1" in origin:
                    raise ValueError(
                        f"CORS origins must not contain localhost in production: {origin}"
                    )

        return self


settings = Settings()
