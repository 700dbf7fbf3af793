"""Админский CRUD каталога с инвалидацией кеша.

Любая успешная запись удаляет `menu:v1`; изменения регионов удаляют ещё
и `regions:v1`. Инвалидация best-effort: ошибка Redis не откатывает запись.
"""

from __future__ import annotations

from typing import TypeVar

from loguru import logger
from redis.asyncio import Redis
from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.errors import (
    CategoryNotFound,
    DomainError,
    ProductMissing,
    RegionNotFound,
    ResourceInUse,
)
from kabobfood.db.base import Base
from kabobfood.models.address import Address
from kabobfood.models.catalog import Category, Product, Region
from kabobfood.models.order import Order, OrderItem
from kabobfood.schemas.catalog import CategoryIn, ProductIn, RegionIn
from kabobfood.services.menu_cache import (
    MENU_CACHE_KEY,
    REGIONS_CACHE_KEY,
    invalidate_cache,
)

ModelT = TypeVar("ModelT", bound=Base)


async def _get_or_raise(
    db: AsyncSession,
    model: type[ModelT],
    object_id: int,
    error: type[DomainError],
) -> ModelT:
    obj = await db.get(model, object_id)
    if obj is None:
        raise error()
    return obj


async def _ensure_category(db: AsyncSession, category_id: int) -> None:
    await _get_or_raise(db, Category, category_id, CategoryNotFound)


async def _commit_delete(db: AsyncSession, obj: Base) -> None:
    await db.delete(obj)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ResourceInUse() from exc


# Categories
async def create_category(db: AsyncSession, cache: Redis, data: CategoryIn) -> Category:
    category = Category(**data.model_dump())
    db.add(category)
    await db.commit()
    await db.refresh(category)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    logger.info("Category created id={id}", id=category.id)
    return category


async def update_category(
    db: AsyncSession,
    cache: Redis,
    category_id: int,
    data: CategoryIn,
) -> Category:
    category = await _get_or_raise(db, Category, category_id, CategoryNotFound)
    for field, value in data.model_dump().items():
        setattr(category, field, value)
    await db.commit()
    await db.refresh(category)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    return category


async def delete_category(db: AsyncSession, cache: Redis, category_id: int) -> None:
    """Удалить категорию вместе с её товарами."""

    category = await _get_or_raise(db, Category, category_id, CategoryNotFound)
    product_ids = select(Product.id).where(Product.category_id == category_id)
    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id.in_(product_ids))
        .values(product_id=None),
    )
    await db.execute(delete(Product).where(Product.category_id == category_id))
    await _commit_delete(db, category)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    logger.info("Category deleted id={id}", id=category_id)


# Products
async def create_product(db: AsyncSession, cache: Redis, data: ProductIn) -> Product:
    await _ensure_category(db, data.category_id)
    product = Product(**data.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    logger.info("Product created id={id}", id=product.id)
    return product


async def update_product(
    db: AsyncSession,
    cache: Redis,
    product_id: int,
    data: ProductIn,
) -> Product:
    product = await _get_or_raise(db, Product, product_id, ProductMissing)
    await _ensure_category(db, data.category_id)
    for field, value in data.model_dump().items():
        setattr(product, field, value)
    await db.commit()
    await db.refresh(product)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    return product


async def delete_product(db: AsyncSession, cache: Redis, product_id: int) -> None:
    """Удалить товар. Позиции старых заказов сохраняют снимок без ссылки."""

    product = await _get_or_raise(db, Product, product_id, ProductMissing)
    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product_id)
        .values(product_id=None),
    )
    await _commit_delete(db, product)
    await invalidate_cache(cache, MENU_CACHE_KEY)
    logger.info("Product deleted id={id}", id=product_id)


# Regions
async def create_region(db: AsyncSession, cache: Redis, data: RegionIn) -> Region:
    region = Region(**data.model_dump())
    db.add(region)
    await db.commit()
    await db.refresh(region)
    await invalidate_cache(cache, REGIONS_CACHE_KEY, MENU_CACHE_KEY)
    logger.info("Region created id={id}", id=region.id)
    return region


async def update_region(
    db: AsyncSession,
    cache: Redis,
    region_id: int,
    data: RegionIn,
) -> Region:
    region = await _get_or_raise(db, Region, region_id, RegionNotFound)
    for field, value in data.model_dump().items():
        setattr(region, field, value)
    await db.commit()
    await db.refresh(region)
    await invalidate_cache(cache, REGIONS_CACHE_KEY, MENU_CACHE_KEY)
    return region


async def delete_region(db: AsyncSession, cache: Redis, region_id: int) -> None:
    """Удалить регион.

    Raises
    ------
    ResourceInUse
        На регион ссылаются адреса или заказы.
    """

    region = await _get_or_raise(db, Region, region_id, RegionNotFound)
    referenced = await db.scalar(
        select(
            exists().where(Address.region_id == region_id)
            | exists().where(Order.region_id == region_id),
        ),
    )
    if referenced:
        raise ResourceInUse("region is used by addresses or orders")
    await _commit_delete(db, region)
    await invalidate_cache(cache, REGIONS_CACHE_KEY, MENU_CACHE_KEY)
    logger.info("Region deleted id={id}", id=region_id)
