"""Бизнес-логика заказов.

Создание заказа
---------------
1. Проверка формы запроса (UUID ключа, позиции, тип, оплата, адрес).
2. Регион должен существовать и быть активным.
3. Адрес (если указан) должен принадлежать пользователю.
4. Повторяющиеся товары сливаются, количества суммируются.
5. Цены берутся только из каталога; неактивный/неизвестный товар
   отклоняет весь заказ.
6. Заголовок и позиции пишутся одной транзакцией. Конфликт уникального
   `client_request_id` означает повтор запроса: возвращается ранее
   созданный заказ.
7. Метрика и уведомление в Telegram - best-effort.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.errors import (
    AddressRequired,
    EmptyItems,
    InvalidAddress,
    InvalidClientRequestID,
    InvalidOrderType,
    InvalidQuantity,
    InvalidRegion,
    InvalidStatus,
    MissingPaymentMethod,
    OrderNotFound,
    OrderPersistenceError,
    ProductNotFound,
)
from kabobfood.core.metrics import ORDER_CREATED_TOTAL
from kabobfood.models.order import Order, OrderItem, OrderStatus, OrderType
from kabobfood.schemas.orders import OrderCreate
from kabobfood.services.addresses import get_user_address
from kabobfood.services.catalog import get_active_products_by_ids, get_active_region
from kabobfood.services.notifications import OrderInfo
from kabobfood.services.users import get_user_by_id

USER_ORDERS_PAGE_SIZE = 50
ADMIN_ORDERS_MAX_LIMIT = 500


class OrderNotifier(Protocol):
    async def notify_order_created(self, info: OrderInfo, user_chat_id: int | None) -> None: ...

    async def notify_status_changed(self, info: OrderInfo, user_chat_id: int | None) -> None: ...


@dataclass(frozen=True)
class CreatedOrder:
    """Результат создания: заказ и флаг «создан сейчас» (False для повтора)."""

    order: Order
    created: bool


def _money(value: float) -> float:
    return round(value, 2)


def _order_info(order: Order) -> OrderInfo:
    return OrderInfo(
        order_id=order.id,
        status=order.status,
        total=order.total_price,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
    )


@dataclass(frozen=True)
class OrderShape:
    """Нормализованные поля запроса после проверки формы."""

    client_request_id: str
    order_type: OrderType


def validate_order_shape(payload: OrderCreate) -> OrderShape:
    """Проверить запрос без обращения к БД.

    Returns
    -------
    OrderShape
        Ключ идемпотентности в каноническом виде (`xxxxxxxx-xxxx-...`,
        нижний регистр) и нормализованный тип заказа.
    """

    try:
        client_request_id = str(uuid.UUID(payload.client_request_id))
    except (ValueError, AttributeError, TypeError) as exc:
        raise InvalidClientRequestID() from exc

    if not payload.items:
        raise EmptyItems()
    if any(item.qty <= 0 for item in payload.items):
        raise InvalidQuantity()

    try:
        order_type = OrderType(payload.type.strip().lower())
    except ValueError as exc:
        raise InvalidOrderType() from exc

    if not payload.payment_method.strip():
        raise MissingPaymentMethod()
    if order_type is OrderType.DELIVERY and not payload.address_id:
        raise AddressRequired()
    return OrderShape(client_request_id=client_request_id, order_type=order_type)


def merge_items(payload: OrderCreate) -> dict[int, int]:
    """Слить позиции с одинаковым товаром (порядок первого появления)."""

    merged: dict[int, int] = {}
    for item in payload.items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.qty
    return merged


async def get_order_by_id(db: AsyncSession, order_id: int) -> Order | None:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True),
    )
    return result.scalar_one_or_none()


async def _get_by_client_request_id(
    db: AsyncSession,
    client_request_id: str,
    user_id: int,
) -> Order | None:
    result = await db.execute(
        select(Order).where(
            Order.client_request_id == client_request_id,
            Order.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def _notify_owner(
    db: AsyncSession,
    order: Order,
    send: Callable[[OrderInfo, int | None], Awaitable[None]],
) -> None:
    """Уведомить владельца заказа (и админский чат). Ошибки только логируются.

    Вызывается после коммита: сбой поиска пользователя или отправки не
    должен превращать сохранённый заказ в ошибку для клиента.
    """

    try:
        user = await get_user_by_id(db, order.user_id)
        if user is None or not user.telegram_id:
            return
        await send(_order_info(order), user.telegram_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Order notification failed order_id={id}: {err}",
            id=order.id,
            err=str(exc),
        )


async def create_order(
    db: AsyncSession,
    user_id: int,
    payload: OrderCreate,
    notifier: OrderNotifier,
) -> CreatedOrder:
    """Создать заказ (идемпотентно по `client_request_id`).

    Parameters
    ----------
    db : sqlalchemy.ext.asyncio.AsyncSession
        Async сессия БД.
    user_id : int
        Владелец заказа.
    payload : OrderCreate
        Запрос клиента. Цены в нём не принимаются.
    notifier : OrderNotifier
        Отправитель уведомлений.

    Returns
    -------
    CreatedOrder
        Сохранённый заказ с позициями.

    Raises
    ------
    InvalidClientRequestID, EmptyItems, InvalidQuantity, InvalidOrderType,
    MissingPaymentMethod, AddressRequired
        Ошибки формы запроса.
    InvalidRegion
        Регион не найден или выключен.
    InvalidAddress
        Адрес не принадлежит пользователю.
    ProductNotFound
        Хотя бы один товар неактивен или не существует.
    OrderPersistenceError
        Конфликт ключа, который не удалось разрешить повтором.
    """

    shape = validate_order_shape(payload)
    order_type = shape.order_type

    region = await get_active_region(db, payload.region_id)
    if region is None:
        raise InvalidRegion()

    address_id: int | None = None
    if payload.address_id:
        address = await get_user_address(db, user_id, payload.address_id)
        if address is None:
            raise InvalidAddress()
        address_id = address.id

    merged = merge_items(payload)
    products = await get_active_products_by_ids(db, merged.keys())
    if len(products) != len(merged):
        raise ProductNotFound()

    items: list[OrderItem] = []
    for product_id, qty in merged.items():
        product = products[product_id]
        items.append(
            OrderItem(
                product_id=product.id,
                product_name=product.name,
                qty=qty,
                price=product.price,
                total=_money(product.price * qty),
            ),
        )
    items_total = _money(sum(item.total for item in items))
    delivery_price = region.delivery_price if order_type is OrderType.DELIVERY else 0.0

    order = Order(
        client_request_id=shape.client_request_id,
        user_id=user_id,
        address_id=address_id,
        region_id=region.id,
        type=order_type.value,
        payment_method=payload.payment_method.strip(),
        status=OrderStatus.NEW.value,
        delivery_price=delivery_price,
        items_total=items_total,
        total_price=_money(items_total + delivery_price),
        comment=payload.comment,
        customer_name=payload.customer_name.strip(),
        customer_phone=payload.customer_phone.strip(),
        items=items,
    )
    db.add(order)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        existing = await _get_by_client_request_id(db, shape.client_request_id, user_id)
        if existing is None:
            logger.error(
                "Order insert conflict without own order client_request_id={key}",
                key=shape.client_request_id,
            )
            raise OrderPersistenceError() from exc
        logger.info(
            "Idempotent replay client_request_id={key} order_id={id}",
            key=shape.client_request_id,
            id=existing.id,
        )
        return CreatedOrder(order=existing, created=False)

    persisted = await get_order_by_id(db, order.id)
    if persisted is None:
        raise OrderPersistenceError()

    ORDER_CREATED_TOTAL.inc()
    logger.info(
        "Order created order_id={id} user_id={user} total={total}",
        id=persisted.id,
        user=user_id,
        total=persisted.total_price,
    )
    await _notify_owner(db, persisted, notifier.notify_order_created)
    return CreatedOrder(order=persisted, created=True)


async def list_orders_by_user(
    db: AsyncSession,
    user_id: int,
    limit: int = USER_ORDERS_PAGE_SIZE,
) -> list[Order]:
    """Заказы пользователя, новые первыми, вместе с позициями."""

    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit),
    )
    return list(result.scalars().all())


async def get_user_order(db: AsyncSession, user_id: int, order_id: int) -> Order:
    """Заказ пользователя.

    Raises
    ------
    OrderNotFound
        Заказа нет или он чужой (для клиента неразличимо).
    """

    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.user_id == user_id),
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise OrderNotFound()
    return order


def normalize_status(status: str) -> OrderStatus:
    try:
        return OrderStatus(status.strip().lower())
    except ValueError as exc:
        raise InvalidStatus() from exc


async def list_orders_admin(
    db: AsyncSession,
    *,
    status: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Order]:
    """Все заказы для оператора с фильтрами по статусу и дате создания."""

    query = select(Order)
    if status:
        query = query.where(Order.status == normalize_status(status).value)
    if date_from is not None:
        query = query.where(Order.created_at >= date_from)
    if date_to is not None:
        query = query.where(Order.created_at <= date_to)

    limit = max(1, min(limit, ADMIN_ORDERS_MAX_LIMIT))
    offset = max(0, offset)
    result = await db.execute(
        query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset),
    )
    return list(result.scalars().all())


async def update_order_status(
    db: AsyncSession,
    order_id: int,
    status: str,
    notifier: OrderNotifier,
) -> Order:
    """Сменить статус заказа (любой допустимый статус из любого).

    Raises
    ------
    InvalidStatus
        Статус не из списка.
    OrderNotFound
        Заказ не найден.
    """

    new_status = normalize_status(status)
    order = await db.get(Order, order_id)
    if order is None:
        raise OrderNotFound()

    previous = order.status
    order.status = new_status.value
    order.updated_at = func.now()
    await db.commit()

    updated = await get_order_by_id(db, order_id)
    if updated is None:
        raise OrderNotFound()
    logger.info(
        "Order status changed order_id={id} {old} -> {new}",
        id=order_id,
        old=previous,
        new=updated.status,
    )

    await _notify_owner(db, updated, notifier.notify_status_changed)
    return updated
