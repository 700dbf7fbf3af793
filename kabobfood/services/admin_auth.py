"""Администраторы: вход по логину/паролю и bootstrap учётки по умолчанию."""

from __future__ import annotations

from datetime import timedelta

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.config import get_settings
from kabobfood.core.errors import InvalidCredentials
from kabobfood.core.security import create_access_token, hash_password, verify_password
from kabobfood.models.user import AdminUser


async def get_admin_by_username(db: AsyncSession, username: str) -> AdminUser | None:
    result = await db.execute(select(AdminUser).where(AdminUser.username == username))
    return result.scalar_one_or_none()


async def login_admin(db: AsyncSession, username: str, password: str) -> str:
    """Проверить логин/пароль и выдать JWT с ролью `admin`.

    Raises
    ------
    InvalidCredentials
        Неизвестный логин или неверный пароль (неразличимо для клиента).
    """

    admin = await get_admin_by_username(db, username.strip())
    if admin is None or not verify_password(password, admin.password_hash):
        logger.warning("Admin login failed username={u}", u=username)
        raise InvalidCredentials()

    settings = get_settings()
    return create_access_token(
        admin.id,
        "admin",
        expires_delta=timedelta(minutes=settings.admin_token_expire_minutes),
    )


async def ensure_default_admin(db: AsyncSession, username: str, password: str) -> bool:
    """Создать админа, если такого логина ещё нет.

    Существующая учётка не трогается (пароль не перезаписывается).

    Returns
    -------
    bool
        True, если запись была создана.
    """

    if await get_admin_by_username(db, username) is not None:
        return False

    db.add(AdminUser(username=username, password_hash=hash_password(password)))
    try:
        await db.commit()
    except IntegrityError:
        # Другая реплика успела создать того же админа.
        await db.rollback()
        return False
    logger.info("Default admin created username={u}", u=username)
    return True
