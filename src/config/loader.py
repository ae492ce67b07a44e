# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.common.constants import SESSION_COOKIE_NAME, SESSION_TTL_DAYS


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _env_bool(name: str, default: bool) -> bool:
    """Читает булев флаг окружения ("1", "true", "yes" считаются истиной)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "lifehub_miniapp"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    # "сегодня" для статистики считается в этой зоне
    TIMEZONE: str = "Europe/Moscow"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class TelegramSettings(BaseModel):
    """Настройки Telegram Mini App (валидация initData)."""
    # A - основной бот (спорт, задачи), B - бот рецептов
    TELEGRAM_BOT_TOKEN_A: str = ""
    TELEGRAM_BOT_TOKEN_B: str = ""
    INIT_DATA_MAX_AGE: int = 86400

    @field_validator("TELEGRAM_BOT_TOKEN_A", "TELEGRAM_BOT_TOKEN_B", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v

    def bot_token_for(self, source: str) -> str:
        """Выбирает токен бота по пути страницы, с которой пришёл запрос."""
        if "/recipes" in source:
            return self.TELEGRAM_BOT_TOKEN_B
        return self.TELEGRAM_BOT_TOKEN_A

    @staticmethod
    def variant_for(source: str) -> str:
        return "B" if "/recipes" in source else "A"


class AuthSettings(BaseModel):
    """Настройки сессий."""
    APP_JWT_SECRET: str = Field(default="", repr=False)
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = SESSION_COOKIE_NAME
    SESSION_TTL_DAYS: int = SESSION_TTL_DAYS

    @field_validator("APP_JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает секрет подписи из переменных окружения."""
        if not v:
            return os.getenv("APP_JWT_SECRET", "")
        return v


class DevSettings(BaseModel):
    """
    Настройки локальной разработки.
    Работают только при ENVIRONMENT=development и DEV_AUTH=true.
    """
    DEV_AUTH: bool = False
    DEV_TG_ID: int = 123456789
    DEV_TG_NAME: str = "Dev"
    DEV_TG_USERNAME: str = "dev"


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "lifehub"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30
    DB_CONNECT_ATTEMPTS: int = 3
    DB_CONNECT_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class StorageSettings(BaseModel):
    """Публичное хранилище фото рецептов (только построение URL)."""
    PUBLIC_STORAGE_URL: str = ""
    STORAGE_BUCKET: str = "recipes"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    dev: DevSettings = Field(default_factory=DevSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def dev_auth_enabled(self) -> bool:
        """Dev-сессии разрешены только в development и при явном флаге."""
        return self.system.is_development and self.dev.DEV_AUTH

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт объект Settings из плоского словаря config.json.
        Секреты и параметры окружения переопределяются из переменных окружения.
        """
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "lifehub_miniapp"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=_env_bool("DEBUG", data.get("DEBUG", False)),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "production")),
                TIMEZONE=os.getenv("TIMEZONE", data.get("TIMEZONE", "Europe/Moscow")),
            ),
            deployment=DeploymentSettings(
                API_HOST=os.getenv("API_HOST", data.get("API_HOST", "0.0.0.0")),
                API_PORT=int(os.getenv("API_PORT", data.get("API_PORT", 8080))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            telegram=TelegramSettings(
                TELEGRAM_BOT_TOKEN_A=os.getenv("TELEGRAM_BOT_TOKEN_A", data.get("TELEGRAM_BOT_TOKEN_A", "")),
                TELEGRAM_BOT_TOKEN_B=os.getenv("TELEGRAM_BOT_TOKEN_B", data.get("TELEGRAM_BOT_TOKEN_B", "")),
                INIT_DATA_MAX_AGE=data.get("INIT_DATA_MAX_AGE", 86400),
            ),
            auth=AuthSettings(
                APP_JWT_SECRET=os.getenv("APP_JWT_SECRET", data.get("APP_JWT_SECRET", "")),
                JWT_ALGORITHM=data.get("JWT_ALGORITHM", "HS256"),
                SESSION_COOKIE_NAME=data.get("SESSION_COOKIE_NAME", SESSION_COOKIE_NAME),
                SESSION_TTL_DAYS=data.get("SESSION_TTL_DAYS", SESSION_TTL_DAYS),
            ),
            # Dev-переопределения берутся только из окружения
            dev=DevSettings(
                DEV_AUTH=_env_bool("DEV_AUTH", False),
                DEV_TG_ID=int(os.getenv("DEV_TG_ID", "123456789")),
                DEV_TG_NAME=os.getenv("DEV_TG_NAME", "Dev"),
                DEV_TG_USERNAME=os.getenv("DEV_TG_USERNAME", "dev"),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "lifehub")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_CONNECT_ATTEMPTS=data.get("DB_CONNECT_ATTEMPTS", 3),
                DB_CONNECT_DELAY=data.get("DB_CONNECT_DELAY", 1.0),
            ),
            storage=StorageSettings(
                PUBLIC_STORAGE_URL=os.getenv("PUBLIC_STORAGE_URL", data.get("PUBLIC_STORAGE_URL", "")),
                STORAGE_BUCKET=data.get("STORAGE_BUCKET", "recipes"),
            ),
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Создаёт объект Settings из config.json."""
        return cls.from_dict(load_config_json())


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
