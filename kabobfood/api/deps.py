"""Общие зависимости для роутов FastAPI (auth, сервисы)."""

from __future__ import annotations

import hmac
from datetime import timedelta

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.config import get_settings
from kabobfood.core.errors import AuthNotConfigured, ForbiddenError, InvalidToken
from kabobfood.core.security import TokenClaims, decode_access_token
from kabobfood.db.session import get_db
from kabobfood.models.user import User
from kabobfood.services.auth import TelegramAuthService
from kabobfood.services.notifications import TelegramNotifier
from kabobfood.services.users import SqlUserRepository, get_user_by_id

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenClaims:
    """Проверить Bearer токен и вернуть типизированные claims.

    Raises
    ------
    InvalidToken
        Токена нет, подпись/срок не сошлись или claims не той формы.
    """

    if credentials is None or not credentials.credentials:
        raise InvalidToken()
    return decode_access_token(credentials.credentials)


async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Получить текущего пользователя по JWT.

    Raises
    ------
    ForbiddenError
        Токен выдан не пользователю (например, админу).
    InvalidToken
        Пользователь из токена не найден.
    """

    if claims.role != "user":
        raise ForbiddenError("user token required")
    user = await get_user_by_id(db, claims.subject_id)
    if user is None:
        raise InvalidToken()
    return user


def require_admin(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
    """Пропустить только токены с ролью `admin`."""

    if claims.role != "admin":
        raise ForbiddenError("admin token required")
    return claims


def get_notifier() -> TelegramNotifier:
    settings = get_settings()
    return TelegramNotifier(
        enabled=settings.bot_token_value is not None,
        admin_chat_id=settings.telegram_admin_chat_id,
    )


def get_auth_service(db: AsyncSession = Depends(get_db)) -> TelegramAuthService:
    """Собрать сервис аутентификации Telegram.

    Raises
    ------
    AuthNotConfigured
        `TELEGRAM_BOT_TOKEN` не задан.
    """

    settings = get_settings()
    bot_token = settings.bot_token_value
    if bot_token is None:
        raise AuthNotConfigured()
    return TelegramAuthService(
        users=SqlUserRepository(db),
        bot_token=bot_token,
        init_data_ttl=settings.telegram_init_data_ttl_seconds,
        token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )


def verify_bot_secret(x_bot_secret: str | None = Header(default=None)) -> None:
    """Если задан `BOT_REGISTER_SECRET`, бот обязан прислать его в `X-Bot-Secret`."""

    secret = get_settings().bot_register_secret
    if secret is None or not secret.get_secret_value():
        return
    expected = secret.get_secret_value().encode("utf-8")
    if x_bot_secret is None or not hmac.compare_digest(
        x_bot_secret.encode("utf-8"),
        expected,
    ):
        raise ForbiddenError("invalid bot secret")
