# src/core/auth/session.py
"""
Определение пользователя по cookie сессии.
"""

from __future__ import annotations

from typing import Mapping

from src.common.constants import SESSION_COOKIE_NAME
from src.common.logger import log_debug
from src.core.auth.token_codec import TokenCodec, TokenError


class SessionResolver:
    """
    Достаёт токен из cookie и проверяет его через TokenCodec.

    Любая ошибка токена сводится к "нет сессии"; конкретная причина
    пишется только в debug-лог.
    """

    def __init__(self, codec: TokenCodec, cookie_name: str = SESSION_COOKIE_NAME) -> None:
        self._codec = codec
        self.cookie_name = cookie_name

    async def resolve(self, cookies: Mapping[str, str]) -> int | None:
        """Возвращает id пользователя или None."""
        token = cookies.get(self.cookie_name)
        if not token:
            return None

        try:
            return self._codec.verify(token)
        except TokenError as e:
            await log_debug(f"Сессия отклонена: {e.failure.value}")
            return None
