# src/common/errors.py
"""
Иерархия ошибок API.

Каждая ошибка знает свой HTTP-статус и стабильный код причины (reason).
Обработчики приложения превращают их в ответ
{"ok": false, "reason": ..., "error": ...}.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import Reason


class ApiError(Exception):
    """Базовая ошибка, отображаемая в HTTP-ответ."""

    status_code: int = 500
    default_reason: str = Reason.SERVER_ERROR.value

    def __init__(
        self,
        reason: str | Reason | None = None,
        message: str | None = None,
        **extra: Any,
    ) -> None:
        if isinstance(reason, Reason):
            reason = reason.value
        self.reason: str = reason or self.default_reason
        self.message = message
        self.extra = extra
        super().__init__(message or self.reason)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"ok": False, "reason": self.reason}
        if self.message:
            body["error"] = self.message
        body.update(self.extra)
        return body


class Unauthenticated(ApiError):
    """Нет сессии или она невалидна/истекла."""
    status_code = 401
    default_reason = Reason.NO_SESSION.value


class Forbidden(ApiError):
    status_code = 403
    default_reason = Reason.FORBIDDEN.value


class MalformedInput(ApiError):
    """Некорректный ввод (id, дата, тип и т.д.)."""
    status_code = 400
    default_reason = Reason.BAD_INPUT.value


class NotFound(ApiError):
    status_code = 404
    default_reason = Reason.NOT_FOUND.value


class Conflict(ApiError):
    status_code = 409
    default_reason = Reason.DUPLICATE.value


class StoreError(ApiError):
    """Ошибка внешнего хранилища, сообщение драйвера передаётся клиенту."""
    status_code = 500
    default_reason = Reason.DB_ERROR.value


class ConfigurationError(ApiError):
    """Не задан обязательный параметр окружения."""
    status_code = 500
