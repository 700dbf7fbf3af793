"""Модель адреса доставки."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, false, text
from sqlalchemy.orm import Mapped, mapped_column

from kabobfood.db.base import Base


class Address(Base):
    """Адрес доставки пользователя.

    Notes
    -----
    У пользователя не больше одного адреса с `is_default=True`. Инвариант
    поддерживает сервис адресов (сбрасывает остальные флаги в той же
    транзакции), а не ограничение БД.
    """

    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    region_id: Mapped[int] = mapped_column(ForeignKey("regions.id"), nullable=False)
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    house: Mapped[str] = mapped_column(String(64), nullable=False)
    entrance: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    flat: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    comment: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )
