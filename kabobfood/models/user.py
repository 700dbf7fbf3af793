"""Модели пользователей: клиенты из Telegram и администраторы."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Float, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from kabobfood.db.base import Base


class User(Base):
    """Клиент, идентифицированный по Telegram id.

    Attributes
    ----------
    id : int
        Внутренний идентификатор.
    telegram_id : int
        Telegram id (уникальный).
    first_name, last_name, username, language : str
        Данные профиля из Telegram; перезаписываются при каждом upsert.
    phone : str
        Телефон. Пустое значение при upsert не затирает сохранённый.
    latitude, longitude : float | None
        Последняя переданная ботом геопозиция.
    created_at : datetime
        Дата регистрации.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_id: Mapped[int] = mapped_column(
        BigInteger,
        unique=True,
        index=True,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    language: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


class AdminUser(Base):
    """Администратор панели управления."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )
