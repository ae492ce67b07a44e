# src/core/users/revision.py
"""
Ревизия данных пользователя.

Одна ревизия на пользователя для всех разделов (тренировки, рецепты,
задачи): users.app_rev увеличивается в той же транзакции, что и
изменение данных. Клиент сравнивает rev со своим кэшем.
"""

from __future__ import annotations

from asyncpg import Connection

from src.common.errors import StoreError
from src.core.users.models import Revision
from src.infra.database import DatabaseManager


async def bump_revision(conn: Connection, user_id: int) -> int:
    """
    Увеличивает ревизию пользователя внутри открытой транзакции.

    Returns:
        Новое значение app_rev
    """
    rev = await conn.fetchval(
        """
        UPDATE users
        SET app_rev = app_rev + 1,
            app_updated_at = GREATEST(app_updated_at, now())
        WHERE id = $1
        RETURNING app_rev
        """,
        user_id,
    )
    if rev is None:
        raise StoreError(message="users row not found")
    return rev


class RevisionTracker:
    """Чтение текущей ревизии пользователя."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def current(self, user_id: int) -> Revision:
        row = await self._db.fetchrow(
            "SELECT app_rev, app_updated_at FROM users WHERE id = $1",
            user_id,
        )
        if row is None:
            raise StoreError(message="users row not found")
        return Revision(rev=row["app_rev"], updated_at=row["app_updated_at"])
