# src/common/logger.py
"""
Модуль структурированного логирования.
Поддерживает JSON и цветной текстовый формат, ротацию файлов
и маскирование секретов (подпись сессий, токены ботов).
"""

from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from src.common.constants import TypeMsg

if TYPE_CHECKING:
    from src.config.loader import LoggingSettings


DEFAULT_LOGGER = "lifehub"

# Глобальные файловые хендлеры (один на процесс)
_GLOBAL_FILE_HANDLER: logging.Handler | None = None
_GLOBAL_ERROR_HANDLER: logging.Handler | None = None

_LOGGING_INITIALIZED: bool = False

# Значения, которые нельзя выводить в логи
_SECRETS: set[str] = set()


# =============================================================================
# ФОРМАТТЕРЫ И ФИЛЬТРЫ
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Форматтер для JSON логов."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной форматтер для консоли (разработка)."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    GRAY = "\033[90m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.GRAY)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        caller_info = ""
        extra_data = getattr(record, "extra_data", None)
        if extra_data and extra_data.get("caller_function"):
            caller_info = (
                f" {self.GRAY}[{extra_data.get('caller_module')}.{extra_data.get('caller_function')}() "
                f"{extra_data.get('caller_file')}:{extra_data.get('caller_line')}]{self.RESET}"
            )

        message = f"{timestamp} {color}[{record.levelname}]{self.RESET}{caller_info} {record.getMessage()}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class SecretsFilter(logging.Filter):
    """Заменяет зарегистрированные секреты на *** в тексте сообщения."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _SECRETS:
            return True
        message = record.getMessage()
        masked = message
        for secret in _SECRETS:
            masked = masked.replace(secret, "***")
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def register_secrets(values: Iterable[str]) -> None:
    """Регистрирует значения, которые должны маскироваться в логах."""
    for value in values:
        # Короткие строки не маскируем, иначе пострадают обычные слова
        if value and len(value) >= 8:
            _SECRETS.add(value)


def _build_file_handler(log_dir: Path, name: str, max_bytes: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(log_dir / f"{name}.log"),
        maxBytes=max_bytes,
        backupCount=3,
        encoding="utf-8",
    )


# =============================================================================
# ЛОГГЕР
# =============================================================================

_loggers: dict[str, logging.Logger] = {}


def setup_logging() -> None:
    """
    Инициализирует систему логирования.
    Повторные вызовы ничего не делают.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED:
        return

    _LOGGING_INITIALIZED = True

    get_logger(DEFAULT_LOGGER)

    for noisy in ("asyncpg", "httpx", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _logging_options() -> "LoggingSettings":
    # Ленивый импорт: config импортирует common
    from src.config import settings
    from src.config.loader import LoggingSettings

    options = settings.logging
    if not isinstance(options, LoggingSettings):
        return LoggingSettings(LOG_LEVEL="DEBUG")
    return options


def _attach_file_handlers(
    logger: logging.Logger,
    options: "LoggingSettings",
    formatter: logging.Formatter,
    secrets_filter: logging.Filter,
) -> None:
    """Общий файл процесса и отдельный error.log, по одному хендлеру на процесс."""
    global _GLOBAL_FILE_HANDLER, _GLOBAL_ERROR_HANDLER

    log_path = Path(options.LOG_FILE_PATH)
    log_name = log_path.stem
    service_name = os.getenv("SERVICE_NAME")
    if service_name:
        log_name = f"{log_name}_{service_name}"

    if _GLOBAL_FILE_HANDLER is None:
        _GLOBAL_FILE_HANDLER = _build_file_handler(log_path.parent, log_name, options.LOG_MAX_BYTES)
        _GLOBAL_FILE_HANDLER.setFormatter(formatter)
        _GLOBAL_FILE_HANDLER.addFilter(secrets_filter)

    if _GLOBAL_ERROR_HANDLER is None:
        _GLOBAL_ERROR_HANDLER = _build_file_handler(log_path.parent, "error", options.LOG_MAX_BYTES)
        _GLOBAL_ERROR_HANDLER.setLevel(logging.ERROR)
        _GLOBAL_ERROR_HANDLER.setFormatter(formatter)
        _GLOBAL_ERROR_HANDLER.addFilter(secrets_filter)

    logger.addHandler(_GLOBAL_FILE_HANDLER)
    logger.addHandler(_GLOBAL_ERROR_HANDLER)


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """
    Возвращает настроенный логгер (кэшируется по имени).
    Все хендлеры маскируют зарегистрированные секреты.
    """
    cached = _loggers.get(name)
    if cached is not None:
        return cached

    options = _logging_options()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, options.LOG_LEVEL.upper(), logging.DEBUG))
    logger.propagate = False
    _loggers[name] = logger

    if logger.handlers:
        return logger

    formatter: logging.Formatter = JsonFormatter() if options.LOG_FORMAT == "json" else ColoredFormatter()
    secrets_filter = SecretsFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(secrets_filter)
    logger.addHandler(console_handler)

    if options.LOG_TO_FILE:
        _attach_file_handlers(logger, options, formatter, secrets_filter)

    return logger


# =============================================================================
# ВСПОМОГАТЕЛЬНЫЕ ФУНКЦИИ ЛОГИРОВАНИЯ
# =============================================================================

def _get_caller_info() -> dict[str, Any]:
    """
    Получает информацию о коде, вызвавшем log_* функцию.
    [0] _get_caller_info, [1] log_*, [2] вызывающий код.
    """
    frame = inspect.currentframe()
    try:
        if frame is None:
            return {}
        caller_frame = frame.f_back.f_back if frame.f_back else None
        if caller_frame is None:
            return {}

        module = inspect.getmodule(caller_frame)
        return {
            "caller_function": caller_frame.f_code.co_name,
            "caller_module": module.__name__ if module else "unknown",
            "caller_file": Path(caller_frame.f_code.co_filename).name,
            "caller_line": caller_frame.f_lineno,
        }
    finally:
        # Освобождаем ссылки на фреймы
        del frame


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """
    Асинхронная функция логирования.

    Args:
        message: Сообщение для логирования
        type_msg: Уровень сообщения
        logger_name: Имя логгера
        extra: Дополнительные данные
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(), **(extra or {})}}

    match type_msg:
        case TypeMsg.DEBUG:
            logger.debug(message, extra=record_extra)
        case TypeMsg.WARNING:
            logger.warning(message, extra=record_extra)
        case TypeMsg.ERROR:
            logger.error(message, extra=record_extra)
        case TypeMsg.CRITICAL:
            logger.critical(message, extra=record_extra)
        case _:
            logger.info(message, extra=record_extra)


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование DEBUG уровня."""
    await log_info(message, type_msg=TypeMsg.DEBUG, logger_name=logger_name, extra=extra)


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование WARNING уровня."""
    await log_info(message, type_msg=TypeMsg.WARNING, logger_name=logger_name, extra=extra)


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """
    Логирование ERROR уровня.

    Args:
        message: Сообщение об ошибке
        logger_name: Имя логгера
        extra: Дополнительные данные
        exc_info: Включать ли трейсбек исключения
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(), **(extra or {})}}
    logger.error(message, extra=record_extra, exc_info=exc_info)
