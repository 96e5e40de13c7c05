"""
Unit tests for application settings.

Tests cover:
- Async driver selection for database URLs
- List-valued settings parsing
- Production safety checks
"""

import pytest
from pydantic import ValidationError

from app.core.config import AppEnvironment, Settings


def _settings(**kwargs) -> Settings:
    fields = {"app_env": "local", "database_url_app": "sqlite+aiosqlite://"}
    fields.update(kwargs)
    return Settings(**fields)


class TestDatabaseUrls:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("postgresql+asyncpg://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
            ("sqlite:///./dev.db", "sqlite+aiosqlite:///./dev.db"),
            ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
        ],
    )
    def test_async_url(self, url, expected):
        assert _settings(database_url_app=url).async_url == expected

    def test_admin_url_falls_back_to_app_url(self):
        settings = _settings(database_url_app="postgresql://u:p@db/app")
        assert settings.admin_async_url == "postgresql+asyncpg://u:p@db/app"

        settings = _settings(database_url_admin="postgresql://admin:p@db/postgres")
        assert settings.admin_async_url == "postgresql+asyncpg://admin:p@db/postgres"


class TestListSettings:
    def test_allowed_extensions_are_normalized(self):
        settings = _settings(file_allowed_extensions="JPG, .png,,gif ")
        assert settings.allowed_extensions_list == [".jpg", ".png", ".gif"]

    def test_cors_origins(self):
        settings = _settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_supported_locales(self):
        assert _settings(supported_locales="en-US, ka-GE").supported_locales_list == [
            "en-US",
            "ka-GE",
        ]


class TestValidation:
    def test_app_env_is_case_insensitive(self):
        assert _settings(app_env="TEST").app_env == AppEnvironment.TEST

    def test_unknown_app_env(self):
        with pytest.raises(ValidationError):
            _settings(app_env="staging")

    def test_max_file_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            _settings(max_file_size_mb=0)

    def test_prod_requires_postgres(self):
        with pytest.raises(ValidationError, match="postgresql"):
            _settings(app_env="prod", cors_origins="https://app.example.com")

    def test_prod_rejects_localhost_cors(self):
        with pytest.raises(ValidationError, match="localhost"):
            _settings(
                app_env="prod",
                database_url_app="postgresql://u:p@db/app",
                cors_origins="http://localhost:3000",
            )

    def test_prod_rejects_auto_create(self):
        with pytest.raises(ValidationError, match="DB_AUTO_CREATE"):
            _settings(
                app_env="prod",
                database_url_app="postgresql://u:p@db/app",
                cors_origins="https://app.example.com",
                db_auto_create=True,
            )

    def test_valid_prod_settings(self):
        settings = _settings(
            app_env="prod",
            database_url_app="postgresql://u:p@db/app",
            cors_origins="https://app.example.com",
        )
        assert settings.app_env == AppEnvironment.PROD
