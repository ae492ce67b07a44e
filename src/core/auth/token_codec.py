# src/core/auth/token_codec.py
"""
Кодек сессионных токенов (JWT, HS256).

Токен содержит только id пользователя (uid) и временные метки iat/exp.
Ни одно поле токена не читается до успешной проверки подписи.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

import jwt

from src.common.constants import SESSION_TTL_DAYS


class TokenFailure(str, Enum):
    """Причина отказа в проверке токена."""
    EXPIRED = "EXPIRED"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    MALFORMED = "MALFORMED"


class TokenError(Exception):
    """Токен не прошёл проверку."""

    def __init__(self, failure: TokenFailure) -> None:
        self.failure = failure
        super().__init__(failure.value)


class TokenCodec:
    """Выпуск и проверка подписанных сессионных токенов."""

    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(days=SESSION_TTL_DAYS),
        algorithm: str = "HS256",
    ) -> None:
        if not secret:
            raise ValueError("Секрет подписи сессий не задан")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = ttl

    def __repr__(self) -> str:
        return f"TokenCodec(algorithm={self._algorithm!r}, ttl={self.ttl!r})"

    def encode(self, user_id: int, now: datetime | None = None) -> str:
        """
        Выпускает токен для пользователя.

        Args:
            user_id: Внутренний id пользователя (users.id)
            now: Момент выпуска (по умолчанию текущее время UTC)
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "uid": int(user_id),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> int:
        """
        Проверяет подпись и срок действия, возвращает id пользователя.

        Raises:
            TokenError: EXPIRED, BAD_SIGNATURE или MALFORMED
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "uid"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError(TokenFailure.EXPIRED)
        except jwt.InvalidSignatureError:
            raise TokenError(TokenFailure.BAD_SIGNATURE)
        except jwt.InvalidTokenError:
            raise TokenError(TokenFailure.MALFORMED)

        uid = payload.get("uid")
        if isinstance(uid, bool) or not isinstance(uid, int) or uid <= 0:
            raise TokenError(TokenFailure.MALFORMED)
        return uid
