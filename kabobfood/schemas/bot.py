"""Схемы регистрации пользователя через бота."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class BotRegisterRequest(BaseModel):
    """Данные, собранные ботом: телефон, имя и геопозиция.

    Обязательность имени, телефона и локации проверяет сервис, чтобы
    ошибка пришла с кодом `invalid_register_input`.
    """

    telegram_id: int
    phone: str = ""
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language: str = ""
    location: Location | None = None
