# src/core/auth/__init__.py
"""
Аутентификация: подписанные сессии и проверка Telegram initData.
"""

from src.core.auth.session import SessionResolver
from src.core.auth.telegram import (
    TelegramAuthError,
    TelegramInitData,
    sign_init_data,
    validate_init_data,
)
from src.core.auth.token_codec import TokenCodec, TokenError, TokenFailure

__all__ = [
    "SessionResolver",
    "TelegramAuthError",
    "TelegramInitData",
    "TokenCodec",
    "TokenError",
    "TokenFailure",
    "sign_init_data",
    "validate_init_data",
]
