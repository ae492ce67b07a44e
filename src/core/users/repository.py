# src/core/users/repository.py
"""
Репозиторий для работы с пользователями в БД.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.core.users.models import User
from src.infra.database import DatabaseManager

_USER_COLUMNS = "id, tg_id, username, first_name, app_rev, app_updated_at, created_at"


class UserRepository:
    """Репозиторий пользователей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """
        Получает пользователя по внутреннему id.

        Args:
            user_id: users.id

        Returns:
            Пользователь или None
        """
        row = await self._db.fetchrow(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
            user_id,
        )
        if row is None:
            return None
        return User.model_validate(dict(row))

    async def upsert_telegram_user(
        self,
        tg_id: int,
        username: Optional[str],
        first_name: Optional[str],
    ) -> User:
        """
        Создаёт пользователя или обновляет имя по tg_id.

        Args:
            tg_id: Telegram ID
            username: Username в Telegram
            first_name: Имя

        Returns:
            Актуальная запись пользователя
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO users (tg_id, telegram_id, username, first_name)
            VALUES ($1, $1, $2, $3)
            ON CONFLICT (tg_id) DO UPDATE SET
                telegram_id = EXCLUDED.telegram_id,
                username = EXCLUDED.username,
                first_name = EXCLUDED.first_name
            RETURNING {_USER_COLUMNS}
            """,
            tg_id,
            username,
            first_name,
        )
        user = User.model_validate(dict(row))
        await log_info(f"Пользователь tg_id={tg_id} -> id={user.id}", type_msg=TypeMsg.DEBUG)
        return user
