# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("APP_JWT_SECRET", "test-jwt-secret-0123456789abcdef")
os.environ.setdefault("TELEGRAM_BOT_TOKEN_A", "111111:test_bot_token_a")
os.environ.setdefault("TELEGRAM_BOT_TOKEN_B", "222222:test_bot_token_b")
os.environ.setdefault("DB_PASSWORD", "test_password")

from fastapi.testclient import TestClient  # noqa: E402

from src.config.loader import (  # noqa: E402
    AuthSettings,
    DevSettings,
    Settings,
    SystemSettings,
    TelegramSettings,
)
from src.core.auth import SessionResolver, TokenCodec  # noqa: E402

TEST_SECRET = "test-jwt-secret-0123456789abcdef"
TEST_USER_ID = 42


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок config.json для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "lifehub_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "API_HOST": "127.0.0.1",
        "API_PORT": 9000,
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FORMAT": "json",
        "INIT_DATA_MAX_AGE": 3600,
        "JWT_ALGORITHM": "HS256",
        "SESSION_COOKIE_NAME": "session",
        "SESSION_TTL_DAYS": 7,
        "DB_HOST": "db.local",
        "DB_PORT": 5433,
        "DB_NAME": "lifehub_test",
        "DB_USER": "tester",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 3,
        "PUBLIC_STORAGE_URL": "https://storage.example.com",
        "STORAGE_BUCKET": "photos",
    }


@pytest.fixture
def app_settings() -> Settings:
    """Настройки production-подобного окружения (dev-вход выключен)."""
    return Settings(
        system=SystemSettings(ENVIRONMENT="test"),
        telegram=TelegramSettings(
            TELEGRAM_BOT_TOKEN_A="111111:test_bot_token_a",
            TELEGRAM_BOT_TOKEN_B="222222:test_bot_token_b",
        ),
        auth=AuthSettings(APP_JWT_SECRET=TEST_SECRET),
        dev=DevSettings(DEV_AUTH=False),
    )


# =============================================================================
# ФИКСТУРЫ СЕССИЙ
# =============================================================================

@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, ttl=timedelta(days=7))


@pytest.fixture
def session_cookie(codec: TokenCodec) -> dict[str, str]:
    """Cookie валидной сессии пользователя TEST_USER_ID."""
    return {"session": codec.encode(TEST_USER_ID)}


# =============================================================================
# ФИКСТУРЫ БД
# =============================================================================

@pytest.fixture
def mock_conn() -> MagicMock:
    """Соединение внутри транзакции."""
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="OK")
    conn.executemany = AsyncMock(return_value=None)
    return conn


@pytest.fixture
def mock_db(mock_conn: MagicMock) -> MagicMock:
    """Мок DatabaseManager: запросы и транзакции без PostgreSQL."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="OK")
    db.health_check = AsyncMock(return_value=True)

    @asynccontextmanager
    async def transaction():
        yield mock_conn

    db.transaction = MagicMock(side_effect=transaction)
    return db


# =============================================================================
# HTTP КЛИЕНТ
# =============================================================================

@pytest.fixture
def client(
    app_settings: Settings,
    mock_db: MagicMock,
    codec: TokenCodec,
) -> Generator[TestClient, None, None]:
    """TestClient с подменёнными зависимостями (lifespan не запускается)."""
    from src.services.miniapp_api import dependencies
    from src.services.miniapp_api.app import app

    overrides = app.dependency_overrides
    overrides[dependencies.get_app_settings] = lambda: app_settings
    overrides[dependencies.get_db] = lambda: mock_db
    overrides[dependencies.get_token_codec] = lambda: codec
    overrides[dependencies.get_session_resolver] = lambda: SessionResolver(codec, cookie_name="session")

    yield TestClient(app)

    overrides.clear()


@pytest.fixture
def user_record() -> dict[str, Any]:
    """Строка users (asyncpg.Record ведёт себя как mapping)."""
    now = datetime.now(timezone.utc)
    return dict(
        id=TEST_USER_ID,
        tg_id=777,
        username="tester",
        first_name="Test",
        app_rev=3,
        app_updated_at=now,
        created_at=now,
    )


@pytest.fixture
def auth_client(client: TestClient, session_cookie: dict[str, str]) -> TestClient:
    """Клиент с cookie валидной сессии."""
    for name, value in session_cookie.items():
        client.cookies.set(name, value)
    return client
