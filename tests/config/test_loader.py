# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from src.config.loader import (
    DevSettings,
    Settings,
    SystemSettings,
    TelegramSettings,
    get_config_path,
    get_project_root,
    load_config_json,
)


class TestPaths:
    """Тесты путей проекта."""

    def test_root_contains_src_and_config(self) -> None:
        root = get_project_root()
        assert isinstance(root, Path)
        assert (root / "src").exists()
        assert (root / "config").exists()

    def test_config_path(self) -> None:
        path = get_config_path()
        assert path.name == "config.json"
        assert path.parent.name == "config"

    def test_load_config_json(self) -> None:
        config = load_config_json()
        assert isinstance(config, dict)
        assert "SESSION_TTL_DAYS" in config

    def test_load_missing_config(self, tmp_path: Path) -> None:
        with patch("src.config.loader.get_config_path", return_value=tmp_path / "missing.json"):
            with pytest.raises(FileNotFoundError):
                load_config_json()


class TestSettingsFromDict:
    """Тесты для Settings.from_dict."""

    def test_sections_filled(self, mock_config: dict[str, Any]) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("ENVIRONMENT", None)
            os.environ.pop("API_PORT", None)
            settings = Settings.from_dict(mock_config)

        assert settings.system.PROJECT_NAME == "lifehub_test"
        assert settings.deployment.API_PORT == 9000
        assert settings.telegram.INIT_DATA_MAX_AGE == 3600
        assert settings.auth.SESSION_TTL_DAYS == 7
        assert settings.database.DB_NAME == "lifehub_test"
        assert settings.storage.STORAGE_BUCKET == "photos"

    def test_timezone(self, mock_config: dict[str, Any]) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TIMEZONE", None)
            assert Settings.from_dict(mock_config).system.TIMEZONE == "Europe/Moscow"
            assert Settings.from_dict({**mock_config, "TIMEZONE": "UTC"}).system.TIMEZONE == "UTC"

    def test_comments_ignored(self, mock_config: dict[str, Any]) -> None:
        settings = Settings.from_dict(mock_config)
        assert not hasattr(settings, "_comment_system")

    def test_secrets_from_env(self, mock_config: dict[str, Any]) -> None:
        env = {"APP_JWT_SECRET": "env-secret-value-123", "DB_PASSWORD": "env-db-password"}
        with patch.dict(os.environ, env):
            settings = Settings.from_dict(mock_config)

        assert settings.auth.APP_JWT_SECRET == "env-secret-value-123"
        assert settings.database.DB_PASSWORD == "env-db-password"

    def test_secret_not_in_repr(self, mock_config: dict[str, Any]) -> None:
        with patch.dict(os.environ, {"APP_JWT_SECRET": "env-secret-value-123"}):
            settings = Settings.from_dict(mock_config)

        assert "env-secret-value-123" not in repr(settings.auth)

    def test_dsn(self, mock_config: dict[str, Any]) -> None:
        with patch.dict(os.environ, {"DB_PASSWORD": "pw"}):
            os.environ.pop("DB_HOST", None)
            settings = Settings.from_dict(mock_config)

        assert settings.database.dsn == "postgresql://tester:pw@db.local:5433/lifehub_test"


class TestDevAuthFlag:
    """Dev-вход включается только явным флагом в development."""

    @pytest.mark.parametrize(
        "environment, flag, expected",
        [
            ("development", True, True),
            ("development", False, False),
            ("production", True, False),
            ("test", True, False),
        ],
    )
    def test_dev_auth_enabled(self, environment: str, flag: bool, expected: bool) -> None:
        settings = Settings(
            system=SystemSettings(ENVIRONMENT=environment),
            dev=DevSettings(DEV_AUTH=flag),
        )
        assert settings.dev_auth_enabled is expected

    def test_dev_flag_read_from_env_only(self, mock_config: dict[str, Any]) -> None:
        """DEV_AUTH в config.json не включает dev-вход."""
        config = {**mock_config, "ENVIRONMENT": "development", "DEV_AUTH": True}
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            os.environ.pop("DEV_AUTH", None)
            settings = Settings.from_dict(config)

        assert settings.dev_auth_enabled is False

    def test_dev_flag_from_env(self, mock_config: dict[str, Any]) -> None:
        with patch.dict(os.environ, {"ENVIRONMENT": "development", "DEV_AUTH": "true"}):
            settings = Settings.from_dict(mock_config)

        assert settings.dev_auth_enabled is True


class TestTelegramSettings:
    """Выбор бота по странице, с которой пришёл запрос."""

    def test_recipes_page_uses_bot_b(self) -> None:
        telegram = TelegramSettings(TELEGRAM_BOT_TOKEN_A="token-a", TELEGRAM_BOT_TOKEN_B="token-b")

        assert telegram.bot_token_for("/recipes/list") == "token-b"
        assert telegram.variant_for("https://app.example.com/recipes") == "B"

    def test_other_pages_use_bot_a(self) -> None:
        telegram = TelegramSettings(TELEGRAM_BOT_TOKEN_A="token-a", TELEGRAM_BOT_TOKEN_B="token-b")

        assert telegram.bot_token_for("/sport") == "token-a"
        assert telegram.bot_token_for("") == "token-a"
        assert telegram.variant_for("/tasks") == "A"
