"""Админские эндпоинты: каталог и заказы. Требуют JWT с ролью `admin`."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.api.deps import get_notifier, require_admin
from kabobfood.db.redis import get_redis
from kabobfood.db.session import get_db
from kabobfood.schemas.catalog import (
    CategoryIn,
    CategoryOut,
    ProductIn,
    ProductOut,
    RegionIn,
    RegionOut,
)
from kabobfood.schemas.orders import OrderOut, OrdersResponse, OrderStatusUpdate
from kabobfood.services import admin_catalog
from kabobfood.services.notifications import TelegramNotifier
from kabobfood.services.orders import list_orders_admin, update_order_status

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


# Categories
@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(
    payload: CategoryIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> CategoryOut:
    category = await admin_catalog.create_category(db, cache, payload)
    return CategoryOut.model_validate(category)


@router.put("/categories/{category_id}", response_model=CategoryOut)
async def update_category_endpoint(
    category_id: int,
    payload: CategoryIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> CategoryOut:
    category = await admin_catalog.update_category(db, cache, category_id, payload)
    return CategoryOut.model_validate(category)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> Response:
    """Удалить категорию вместе с её товарами."""

    await admin_catalog.delete_category(db, cache, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Products
@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(
    payload: ProductIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> ProductOut:
    product = await admin_catalog.create_product(db, cache, payload)
    return ProductOut.model_validate(product)


@router.put("/products/{product_id}", response_model=ProductOut)
async def update_product_endpoint(
    product_id: int,
    payload: ProductIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> ProductOut:
    product = await admin_catalog.update_product(db, cache, product_id, payload)
    return ProductOut.model_validate(product)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product_endpoint(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> Response:
    await admin_catalog.delete_product(db, cache, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Regions
@router.post("/regions", response_model=RegionOut, status_code=status.HTTP_201_CREATED)
async def create_region_endpoint(
    payload: RegionIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> RegionOut:
    region = await admin_catalog.create_region(db, cache, payload)
    return RegionOut.model_validate(region)


@router.put("/regions/{region_id}", response_model=RegionOut)
async def update_region_endpoint(
    region_id: int,
    payload: RegionIn,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> RegionOut:
    region = await admin_catalog.update_region(db, cache, region_id, payload)
    return RegionOut.model_validate(region)


@router.delete("/regions/{region_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_region_endpoint(
    region_id: int,
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> Response:
    """Удалить регион.

    Raises
    ------
    ResourceInUse
        409, если на регион ссылаются адреса или заказы.
    """

    await admin_catalog.delete_region(db, cache, region_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Orders
@router.get("/orders", response_model=OrdersResponse)
async def list_orders_endpoint(
    order_status: str | None = Query(None, alias="status"),
    date_from: datetime | None = Query(None, alias="from"),
    date_to: datetime | None = Query(None, alias="to"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> OrdersResponse:
    """Заказы всех пользователей (фильтры: статус, период создания)."""

    orders = await list_orders_admin(
        db,
        status=order_status,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return OrdersResponse(orders=[OrderOut.model_validate(o) for o in orders])


@router.put("/orders/{order_id}/status", response_model=OrderOut)
async def update_order_status_endpoint(
    order_id: int,
    payload: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    notifier: TelegramNotifier = Depends(get_notifier),
) -> OrderOut:
    """Сменить статус заказа.

    Raises
    ------
    InvalidStatus
        400, статус не из списка.
    OrderNotFound
        404, заказ не найден.
    """

    order = await update_order_status(db, order_id, payload.status, notifier)
    return OrderOut.model_validate(order)
