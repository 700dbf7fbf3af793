"""Утилиты безопасности (пароли, JWT).

Пароли
------
Используется PBKDF2-HMAC-SHA256 (stdlib), чтобы не тянуть `passlib` и избежать
dep-warning'ов. Формат хранения:

`pbkdf2_sha256$<iterations>$<salt_b64>$<hash_b64>`

JWT
---
Используется `PyJWT` (HS256 по умолчанию). Claims токена разбираются в
типизированную модель `TokenClaims`; токен, который в неё не укладывается,
считается невалидным.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

import jwt
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from kabobfood.core.config import get_settings
from kabobfood.core.errors import InvalidToken

Role = Literal["user", "admin"]

_SCHEME = "pbkdf2_sha256"
_ITERATIONS = 200_000
_SALT_BYTES = 16
_DK_LEN = 32


class TokenClaims(BaseModel):
    """Claims сессионного токена."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    telegram_id: int | None = None
    role: Role
    iat: int
    exp: int

    @field_validator("sub")
    @classmethod
    def _sub_is_numeric(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("sub must be a numeric id")
        return value

    @property
    def subject_id(self) -> int:
        """Внутренний id пользователя/админа из `sub`."""

        return int(self.sub)


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def hash_password(password: str) -> str:
    """Захэшировать пароль.

    Parameters
    ----------
    password : str
        Пароль в открытом виде.

    Returns
    -------
    str
        Строка хэша в формате `<scheme>$<iterations>$<salt>$<hash>`.
    """

    salt = secrets.token_bytes(_SALT_BYTES)
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        _ITERATIONS,
        dklen=_DK_LEN,
    )
    return f"{_SCHEME}${_ITERATIONS}${_b64encode(salt)}${_b64encode(dk)}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Проверить пароль по сохранённому хэшу."""

    try:
        scheme, iterations_s, salt_b64, digest_b64 = stored_hash.split("$", 3)
        if scheme != _SCHEME:
            return False
        iterations = int(iterations_s)
        salt = _b64decode(salt_b64)
        expected = _b64decode(digest_b64)
    except (ValueError, TypeError):
        return False

    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
        dklen=len(expected),
    )
    return hmac.compare_digest(dk, expected)


def create_access_token(
    subject: int,
    role: Role,
    *,
    telegram_id: int | None = None,
    expires_delta: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """Создать подписанный JWT.

    Parameters
    ----------
    subject : int
        Внутренний id пользователя или админа.
    role : {"user", "admin"}
        Роль владельца токена.
    telegram_id : int | None
        Telegram id (только для пользователей).
    expires_delta : datetime.timedelta | None
        Время жизни. По умолчанию `ACCESS_TOKEN_EXPIRE_MINUTES`.
    now : datetime.datetime | None
        Момент выпуска (для детерминированных тестов).

    Returns
    -------
    str
        JWT токен.
    """

    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    issued_at = now or datetime.now(timezone.utc)
    to_encode: dict[str, object] = {
        "sub": str(subject),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
    }
    if telegram_id is not None:
        to_encode["telegram_id"] = telegram_id
    return jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )


def decode_access_token(token: str) -> TokenClaims:
    """Проверить подпись и срок действия, разобрать claims.

    Raises
    ------
    InvalidToken
        Если токен невалиден, истёк или claims не той формы.
    """

    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
        claims = TokenClaims.model_validate(payload)
    except (jwt.PyJWTError, ValidationError) as exc:
        raise InvalidToken() from exc
    return claims
