# src/services/miniapp_api/routes/auth.py
"""
Вход через Telegram, выход и dev-сессия.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Response
from pydantic import BaseModel, ConfigDict

from src.common.constants import Reason, TypeMsg
from src.common.errors import ConfigurationError, Forbidden, Unauthenticated
from src.common.logger import log_info
from src.config.loader import Settings
from src.core.auth import TelegramAuthError, TokenCodec, validate_init_data
from src.core.users import UserRepository
from src.services.miniapp_api.cookies import clear_session_cookie, set_session_cookie
from src.services.miniapp_api.dependencies import (
    get_app_settings,
    get_token_codec,
    get_user_repository,
)

router = APIRouter(prefix="/api", tags=["Auth"])


class AuthRequest(BaseModel):
    """Тело POST /api/auth."""

    model_config = ConfigDict(extra="ignore")

    initData: str = ""
    path: str = ""


@router.post("/auth")
async def telegram_login(
    response: Response,
    payload: Optional[AuthRequest] = None,
    referer: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    codec: TokenCodec = Depends(get_token_codec),
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    """
    Вход по initData Telegram Mini App.

    Бот выбирается по пути страницы (или Referer): /recipes -> бот B, иначе A.
    """
    payload = payload or AuthRequest()
    source = payload.path or referer or ""

    bot_token = settings.telegram.bot_token_for(source)
    if not bot_token:
        raise ConfigurationError(Reason.NO_BOT_TOKEN)

    try:
        init_data = validate_init_data(
            payload.initData,
            bot_token,
            max_age_seconds=settings.telegram.INIT_DATA_MAX_AGE,
        )
    except TelegramAuthError as e:
        await log_info(f"initData отклонены: {e.reason}", type_msg=TypeMsg.DEBUG)
        raise Unauthenticated(e.reason)

    tg_user = init_data.user
    if tg_user.id <= 0:
        raise Unauthenticated("BAD_TG_ID")

    user = await users.upsert_telegram_user(
        tg_id=tg_user.id,
        username=tg_user.username or None,
        first_name=tg_user.first_name or None,
    )

    set_session_cookie(response, codec.encode(user.id), settings)
    response.headers["x-bot-variant"] = settings.telegram.variant_for(source)
    await log_info(f"Вход пользователя id={user.id}", type_msg=TypeMsg.INFO)
    return {"ok": True}


@router.post("/auth/logout")
async def logout(
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    clear_session_cookie(response, settings)
    return {"ok": True}


@router.post("/dev-auth")
async def dev_login(
    response: Response,
    settings: Settings = Depends(get_app_settings),
    codec: TokenCodec = Depends(get_token_codec),
    users: UserRepository = Depends(get_user_repository),
) -> dict[str, Any]:
    """
    Dev-сессия без Telegram.
    Работает только при ENVIRONMENT=development и DEV_AUTH, иначе 403.
    """
    if not settings.dev_auth_enabled:
        raise Forbidden(Reason.DEV_AUTH_DISABLED)

    dev = settings.dev
    user = await users.upsert_telegram_user(
        tg_id=dev.DEV_TG_ID,
        username=dev.DEV_TG_USERNAME,
        first_name=dev.DEV_TG_NAME,
    )

    set_session_cookie(response, codec.encode(user.id), settings)
    await log_info(f"Dev-сессия для id={user.id}", type_msg=TypeMsg.WARNING)
    return {
        "ok": True,
        "dev": True,
        "user": {
            "id": dev.DEV_TG_ID,
            "first_name": dev.DEV_TG_NAME,
            "username": dev.DEV_TG_USERNAME,
        },
    }
