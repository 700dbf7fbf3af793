"""Эндпоинты аутентификации: Mini App, бот, админ."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.api.deps import get_auth_service, verify_bot_secret
from kabobfood.db.session import get_db
from kabobfood.schemas.auth import (
    AdminLoginRequest,
    AuthResponse,
    TelegramAuthRequest,
    TokenResponse,
    UserOut,
)
from kabobfood.schemas.bot import BotRegisterRequest
from kabobfood.services.admin_auth import login_admin
from kabobfood.services.auth import TelegramAuthService

router = APIRouter()


@router.post("/auth/telegram", response_model=AuthResponse)
async def auth_telegram(
    payload: TelegramAuthRequest,
    service: TelegramAuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Войти по `initData` из Telegram Mini App.

    Returns
    -------
    AuthResponse
        JWT (role=user) и профиль.

    Raises
    ------
    InvalidInitData, ExpiredInitData, MissingUserPayload
        401 с соответствующим `code`.
    """

    result = await service.authenticate(payload.init_data)
    return AuthResponse(token=result.token, profile=UserOut.model_validate(result.profile))


@router.post(
    "/bot/register",
    response_model=TokenResponse,
    dependencies=[Depends(verify_bot_secret)],
)
async def bot_register(
    payload: BotRegisterRequest,
    service: TelegramAuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Зарегистрировать пользователя по данным, собранным ботом."""

    result = await service.register_bot_user(payload)
    return TokenResponse(token=result.token)


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(
    payload: AdminLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Выдать JWT с ролью `admin` по логину и паролю."""

    token = await login_admin(db, payload.username, payload.password)
    return TokenResponse(token=token)
