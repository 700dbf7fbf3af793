"""Аутентификация пользователей Telegram.

Mini App передаёт строку `initData`, подписанную Telegram. Проверка:

1. строка разбирается как query string;
2. обязательны `hash` и `auth_date`, `auth_date` не старше TTL;
3. data-check-string: все пары кроме `hash` в виде `key=value`,
   отсортированные и склеенные через `\\n`;
4. ключ подписи: SHA-256 от токена бота, подпись: HMAC-SHA256 (hex);
5. поле `user` (JSON) превращается в профиль и upsert'ится в БД.

После проверки выдаётся JWT с ролью `user`.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol
from urllib.parse import parse_qsl

from loguru import logger
from pydantic import BaseModel, ValidationError

from kabobfood.core.errors import (
    ExpiredInitData,
    InvalidInitData,
    InvalidRegisterInput,
    MissingUserPayload,
)
from kabobfood.core.security import create_access_token
from kabobfood.models.user import User
from kabobfood.schemas.bot import BotRegisterRequest
from kabobfood.services.users import TelegramUserData


class UserUpserter(Protocol):
    """Всё, что нужно сервису от хранилища пользователей."""

    async def upsert_telegram_user(self, data: TelegramUserData) -> User: ...


class TelegramUserPayload(BaseModel):
    """Поле `user` из initData."""

    id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""
    phone_number: str = ""


@dataclass(frozen=True)
class AuthResult:
    token: str
    profile: User


def parse_init_data(init_data: str) -> dict[str, str]:
    """Разобрать initData в словарь (при повторе ключа берётся первое значение).

    Raises
    ------
    InvalidInitData
        Если строка не является корректной query string.
    """

    try:
        pairs = parse_qsl(init_data, keep_blank_values=True, strict_parsing=True)
    except ValueError as exc:
        raise InvalidInitData() from exc

    values: dict[str, str] = {}
    for key, value in pairs:
        values.setdefault(key, value)
    return values


def build_data_check_string(values: dict[str, str]) -> str:
    pairs = sorted(f"{key}={value}" for key, value in values.items() if key != "hash")
    return "\n".join(pairs)


def sign_data_check_string(data_check_string: str, bot_token: str) -> str:
    """Вычислить подпись data-check-string в hex."""

    secret = hashlib.sha256(bot_token.encode("utf-8")).digest()
    return hmac.new(
        secret,
        data_check_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class TelegramAuthService:
    """Проверка initData, upsert пользователя и выпуск токена.

    Parameters
    ----------
    users : UserUpserter
        Хранилище пользователей.
    bot_token : str
        Токен бота, которым Telegram подписывает initData.
    init_data_ttl : int
        Допустимый возраст `auth_date` в секундах; 0 отключает проверку.
    token_ttl : datetime.timedelta
        Время жизни выдаваемого JWT.
    clock : Callable[[], float], default=time.time
        Текущее unix-время.
    """

    def __init__(
        self,
        users: UserUpserter,
        bot_token: str,
        init_data_ttl: int,
        token_ttl: timedelta,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not bot_token:
            raise ValueError("telegram bot token is required")
        self.users = users
        self.bot_token = bot_token
        self.init_data_ttl = init_data_ttl
        self.token_ttl = token_ttl
        self.clock = clock

    def verify_init_data(self, init_data: str) -> dict[str, str]:
        """Проверить подпись и свежесть initData.

        Returns
        -------
        dict[str, str]
            Разобранные пары.

        Raises
        ------
        InvalidInitData
            Строка битая, нет `hash`/`auth_date` или подпись не сошлась.
        ExpiredInitData
            `auth_date` старше TTL.
        """

        values = parse_init_data(init_data)

        received_hash = values.get("hash", "")
        auth_date_raw = values.get("auth_date", "")
        if not received_hash or not auth_date_raw:
            raise InvalidInitData()

        try:
            auth_date = int(auth_date_raw)
        except ValueError as exc:
            raise InvalidInitData() from exc

        if self.init_data_ttl > 0 and self.clock() - auth_date > self.init_data_ttl:
            raise ExpiredInitData()

        expected = sign_data_check_string(build_data_check_string(values), self.bot_token)
        if not hmac.compare_digest(expected.encode("utf-8"), received_hash.encode("utf-8")):
            raise InvalidInitData()
        return values

    async def authenticate(self, init_data: str) -> AuthResult:
        """Войти по initData из Mini App.

        Raises
        ------
        MissingUserPayload
            Подпись верна, но поля `user` нет.
        InvalidInitData
            `user` не разбирается в профиль (и все ошибки `verify_init_data`).
        """

        values = self.verify_init_data(init_data)

        raw_user = values.get("user", "")
        if not raw_user:
            raise MissingUserPayload()
        try:
            payload = TelegramUserPayload.model_validate(json.loads(raw_user))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise InvalidInitData() from exc

        user = await self.users.upsert_telegram_user(
            TelegramUserData(
                telegram_id=payload.id,
                first_name=payload.first_name,
                last_name=payload.last_name,
                username=payload.username,
                phone=payload.phone_number,
                language=payload.language_code,
            ),
        )
        logger.info("Telegram user authenticated user_id={id}", id=user.id)
        return AuthResult(token=self.issue_token(user), profile=user)

    async def register_bot_user(self, data: BotRegisterRequest) -> AuthResult:
        """Зарегистрировать пользователя по данным, собранным ботом.

        Подпись здесь не проверяется: эндпоинт доверяет самому боту.

        Raises
        ------
        InvalidRegisterInput
            Нет имени, телефона или геопозиции.
        """

        first_name = data.first_name.strip()
        phone = data.phone.strip()
        if not first_name or not phone or data.location is None:
            raise InvalidRegisterInput()

        user = await self.users.upsert_telegram_user(
            TelegramUserData(
                telegram_id=data.telegram_id,
                first_name=first_name,
                last_name=data.last_name.strip(),
                username=data.username.strip(),
                phone=phone,
                language=data.language.strip(),
                latitude=data.location.latitude,
                longitude=data.location.longitude,
            ),
        )
        logger.info("Bot registered user_id={id}", id=user.id)
        return AuthResult(token=self.issue_token(user), profile=user)

    def issue_token(self, user: User) -> str:
        return create_access_token(
            user.id,
            "user",
            telegram_id=user.telegram_id,
            expires_delta=self.token_ttl,
            now=datetime.fromtimestamp(self.clock(), tz=timezone.utc),
        )
