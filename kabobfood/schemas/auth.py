"""Схемы для аутентификации."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TelegramAuthRequest(BaseModel):
    """Запрос входа из Mini App: подписанная строка `initData`."""

    init_data: str = Field(min_length=1)


class UserOut(BaseModel):
    """Публичный профиль пользователя."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    telegram_id: int
    first_name: str
    last_name: str
    username: str
    phone: str
    language: str
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime


class AuthResponse(BaseModel):
    """Токен сессии и профиль."""

    token: str
    profile: UserOut


class AdminLoginRequest(BaseModel):
    """Логин администратора."""

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    """Ответ, содержащий только токен."""

    token: str
