"""Схемы для заказов.

Входные схемы намеренно мягкие (без `ge`/enum): бизнес-правила проверяет
сервис заказов, чтобы клиент получил конкретный код ошибки. Схема
ограничивает только длину строк размерами колонок.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OrderItemIn(BaseModel):
    """Позиция заказа от клиента. Цена не принимается."""

    product_id: int
    qty: int


class OrderCreate(BaseModel):
    """Запрос на создание заказа."""

    client_request_id: str = Field(max_length=64)
    type: str = Field(max_length=32)
    region_id: int = 0
    address_id: int | None = None
    payment_method: str = Field(default="", max_length=64)
    customer_name: str = Field(default="", max_length=255)
    customer_phone: str = Field(default="", max_length=32)
    comment: str = Field(default="", max_length=2000)
    items: list[OrderItemIn] = []


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int | None
    product_name: str
    qty: int
    price: float
    total: float


class OrderOut(BaseModel):
    """Заказ в том виде, в каком он сохранён."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    client_request_id: str
    user_id: int
    address_id: int | None
    type: str
    payment_method: str
    status: str
    region_id: int
    delivery_price: float
    items_total: float
    total_price: float
    comment: str
    customer_name: str
    customer_phone: str
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemOut]


class OrdersResponse(BaseModel):
    orders: list[OrderOut]


class OrderStatusUpdate(BaseModel):
    """Новый статус заказа (проверяется сервисом, регистр не важен)."""

    status: str
