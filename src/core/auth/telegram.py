# src/core/auth/telegram.py
"""
Валидация Telegram Mini App initData.
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl

from pydantic import BaseModel, ValidationError


class TelegramUser(BaseModel):
    """Данные пользователя из initData."""
    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None


class TelegramInitData(BaseModel):
    """Проверенные данные initData."""
    user: TelegramUser
    auth_date: datetime | None = None
    query_id: str | None = None
    start_param: str | None = None


class TelegramAuthError(Exception):
    """Ошибка валидации Telegram данных, reason: стабильный код для клиента."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or reason)


def _secret_key(bot_token: str) -> bytes:
    # HMAC-SHA256(key="WebAppData", msg=bot_token)
    return hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """
    Считает hash для набора полей initData.
    Используется для проверки и в тестах для построения валидных данных.
    """
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    return hmac.new(_secret_key(bot_token), data_check_string.encode(), hashlib.sha256).hexdigest()


def validate_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int | None = 86400,
    now: datetime | None = None,
) -> TelegramInitData:
    """
    Валидировать initData от Telegram Mini App.

    Args:
        init_data: URL-encoded строка от Telegram WebApp.initData
        bot_token: Токен бота, открывшего Mini App
        max_age_seconds: Максимальный возраст auth_date (None: без проверки)
        now: Текущее время (для тестов)

    Returns:
        TelegramInitData с данными пользователя

    Raises:
        TelegramAuthError: no_hash, bad_hash, no_user, bad_user, expired
    """
    fields = dict(parse_qsl(init_data, keep_blank_values=True))

    received_hash = fields.pop("hash", "")
    if not received_hash:
        raise TelegramAuthError("no_hash")

    calculated_hash = sign_init_data(fields, bot_token)
    if not hmac.compare_digest(calculated_hash, received_hash):
        raise TelegramAuthError("bad_hash")

    auth_date: datetime | None = None
    raw_auth_date = fields.get("auth_date")
    if raw_auth_date:
        try:
            auth_date = datetime.fromtimestamp(int(raw_auth_date), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            raise TelegramAuthError("bad_auth_date")

    if max_age_seconds is not None and auth_date is not None:
        current = now or datetime.now(timezone.utc)
        if current - auth_date > timedelta(seconds=max_age_seconds):
            raise TelegramAuthError("expired")

    raw_user = fields.get("user")
    if not raw_user:
        raise TelegramAuthError("no_user")

    try:
        user = TelegramUser.model_validate(json.loads(raw_user))
    except (json.JSONDecodeError, ValidationError) as e:
        raise TelegramAuthError("bad_user", f"Ошибка парсинга user: {e}")

    return TelegramInitData(
        user=user,
        auth_date=auth_date,
        query_id=fields.get("query_id"),
        start_param=fields.get("start_param"),
    )
