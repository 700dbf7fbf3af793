"""Модели заказа и его позиций."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kabobfood.db.base import Base


class OrderStatus(str, Enum):
    """Статус заказа."""

    NEW = "new"
    ACCEPTED = "accepted"
    COOKING = "cooking"
    DELIVERY = "delivery"
    DELIVERED = "delivered"
    CANCELED = "canceled"


class OrderType(str, Enum):
    """Способ получения заказа."""

    DELIVERY = "delivery"
    PICKUP = "pickup"


class Order(Base):
    """Заказ пользователя.

    Attributes
    ----------
    client_request_id : str
        Ключ идемпотентности (UUID от клиента), уникален.
    delivery_price : float
        Цена доставки региона; 0 для самовывоза.
    items_total : float
        Сумма позиций по ценам каталога.
    total_price : float
        `items_total + delivery_price`.
    customer_name, customer_phone : str
        Снимок контактов на момент заказа (не зависит от профиля).
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_request_id: Mapped[str] = mapped_column(
        String(36),
        unique=True,
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        index=True,
        nullable=False,
    )
    address_id: Mapped[int | None] = mapped_column(
        ForeignKey("addresses.id", ondelete="SET NULL"),
        nullable=True,
    )
    region_id: Mapped[int] = mapped_column(ForeignKey("regions.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=OrderStatus.NEW.value,
        server_default=text("'new'"),
    )
    delivery_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    items_total: Mapped[float] = mapped_column(Float, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    items: Mapped[list[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    """Позиция заказа: снимок названия и цены товара на момент заказа."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")
