# src/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений, транзакции и перевод ошибок драйвера в StoreError.

Запросы не повторяются: ошибка сразу уходит обработчику запроса.
Повторные попытки выполняются только при установке пула на старте.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from src.common.constants import TypeMsg
from src.common.errors import StoreError
from src.common.logger import log_error, log_info

T = TypeVar("T")

# Ошибки, означающие недоступность БД
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)

# Всё, что драйвер может бросить при выполнении запроса
QUERY_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Декоратор повторных попыток при ошибках подключения.
    Применяется только к установке пула.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка между попытками (секунды)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_error: BaseException | None = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except CONNECTION_ERRORS as e:
                    last_error = e
                    if attempt < max_attempts:
                        await log_info(
                            f"Ошибка подключения к БД (попытка {attempt}/{max_attempts}): {e}",
                            type_msg=TypeMsg.WARNING,
                        )
                        await asyncio.sleep(delay * attempt)
                    else:
                        await log_error(f"Не удалось подключиться к БД после {max_attempts} попыток: {e}")

            raise last_error  # type: ignore[misc]

        return wrapper  # type: ignore[return-value]

    return decorator


def store_errors(func: Callable[..., T]) -> Callable[..., T]:
    """Переводит ошибки драйвера в StoreError с исходным сообщением."""
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except StoreError:
            raise
        except QUERY_ERRORS as e:
            await log_error(f"Ошибка запроса к БД в {func.__name__}: {e}")
            raise StoreError(message=str(e)) from e

    return wrapper  # type: ignore[return-value]


class DatabaseManager:
    """
    Менеджер подключений к PostgreSQL.
    Создаётся один раз при старте приложения и передаётся в репозитории.
    """

    def __init__(self) -> None:
        self._pool: Pool | None = None

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: int = 30,
        attempts: int = 3,
        delay: float = 1.0,
    ) -> None:
        """
        Создаёт пул соединений к PostgreSQL.

        Args:
            dsn: DSN строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команд (секунды)
            attempts: Число попыток подключения
            delay: Базовая задержка между попытками
        """
        if self._pool is not None:
            return

        @retry_on_connection_error(max_attempts=attempts, delay=delay)
        async def _create() -> Pool:
            return await asyncpg.create_pool(
                dsn=dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=command_timeout,
            )

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)
        self._pool = await _create()
        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Контекстный менеджер для получения соединения из пула.

        Example:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM users")
        """
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """
        Контекстный менеджер для транзакции.
        Commit при успехе, rollback при ошибке; ошибки драйвера
        выходят наружу как StoreError.

        Example:
            async with db.transaction() as conn:
                await conn.execute("INSERT INTO workouts ...")
                await conn.execute("UPDATE users SET app_rev = app_rev + 1 ...")
        """
        try:
            async with self.pool.acquire() as connection:
                async with connection.transaction():
                    yield connection
        except StoreError:
            raise
        except QUERY_ERRORS as e:
            await log_error(f"Транзакция отменена: {e}")
            raise StoreError(message=str(e)) from e

    @store_errors
    async def execute(self, query: str, *args: Any) -> str:
        """Выполняет SQL запрос без возврата данных, возвращает статус."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @store_errors
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        """Выполняет SQL запрос и возвращает все строки."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @store_errors
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        """Выполняет SQL запрос и возвращает одну строку."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @store_errors
    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        """Выполняет SQL запрос и возвращает одно значение."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        """Проверяет здоровье подключения к БД."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except (StoreError, RuntimeError) as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


async def init_db(db: DatabaseManager) -> None:
    """Подключает менеджер к БД по настройкам приложения."""
    from src.config import settings

    cfg = settings.database
    await db.connect(
        dsn=cfg.dsn,
        min_size=cfg.DB_MIN_POOL_SIZE,
        max_size=cfg.DB_MAX_POOL_SIZE,
        command_timeout=cfg.DB_COMMAND_TIMEOUT,
        attempts=cfg.DB_CONNECT_ATTEMPTS,
        delay=cfg.DB_CONNECT_DELAY,
    )
    await log_info(f"PostgreSQL подключён: {cfg.DB_HOST}:{cfg.DB_PORT}/{cfg.DB_NAME}", type_msg=TypeMsg.INFO)


async def apply_schema(db: DatabaseManager) -> None:
    """Применяет migrations/init.sql (идемпотентный DDL)."""
    from src.config.loader import get_project_root

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        raise FileNotFoundError(f"Файл схемы БД не найден: {schema_path}")

    schema_sql = schema_path.read_text(encoding="utf-8")

    await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
    async with db.transaction() as conn:
        # Лок против одновременного запуска миграций
        await conn.execute("SELECT pg_advisory_xact_lock(4242001)")
        await conn.execute(schema_sql)
    await log_info("Схема БД успешно применена", type_msg=TypeMsg.INFO)
