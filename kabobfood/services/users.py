"""Пользователи: upsert по Telegram id и выборка по id."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.models.user import User


@dataclass(frozen=True)
class TelegramUserData:
    """Данные пользователя, пришедшие из Telegram (Mini App или бот)."""

    telegram_id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    phone: str = ""
    language: str = ""
    latitude: float | None = None
    longitude: float | None = None


def apply_telegram_data(user: User, data: TelegramUserData) -> None:
    """Слить новые данные в существующую запись.

    Имя, username и язык перезаписываются всегда. Телефон обновляется
    только непустым значением, координаты только если переданы обе.
    """

    user.first_name = data.first_name
    user.last_name = data.last_name
    user.username = data.username
    user.language = data.language
    if data.phone.strip():
        user.phone = data.phone.strip()
    if data.latitude is not None and data.longitude is not None:
        user.latitude = data.latitude
        user.longitude = data.longitude


class SqlUserRepository:
    """Хранилище пользователей поверх AsyncSession.

    Parameters
    ----------
    db : sqlalchemy.ext.asyncio.AsyncSession
        Async сессия БД.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_telegram_id(self, telegram_id: int) -> User | None:
        result = await self.db.execute(
            select(User).where(User.telegram_id == telegram_id),
        )
        return result.scalar_one_or_none()

    async def upsert_telegram_user(self, data: TelegramUserData) -> User:
        """Создать пользователя или обновить существующего.

        Returns
        -------
        User
            Сохранённая запись.

        Notes
        -----
        Если параллельный запрос успел вставить ту же строку, уникальный
        индекс по `telegram_id` даст IntegrityError; тогда запись
        перечитывается и обновляется.
        """

        user = await self.get_by_telegram_id(data.telegram_id)
        if user is None:
            user = User(telegram_id=data.telegram_id, phone="")
            apply_telegram_data(user, data)
            self.db.add(user)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                user = await self.get_by_telegram_id(data.telegram_id)
                if user is None:
                    raise
            else:
                await self.db.refresh(user)
                return user

        apply_telegram_data(user, data)
        await self.db.commit()
        await self.db.refresh(user)
        return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Найти пользователя по внутреннему id."""

    return await db.get(User, user_id)
