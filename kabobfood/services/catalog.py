"""Чтение каталога из БД: регионы, категории, товары."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.models.catalog import Category, Product, Region


async def get_active_region(db: AsyncSession, region_id: int) -> Region | None:
    """Активный регион по id или None (неизвестный и выключенный неразличимы)."""

    region = await db.get(Region, region_id)
    if region is None or not region.is_active:
        return None
    return region


async def list_active_regions(db: AsyncSession) -> list[Region]:
    result = await db.execute(
        select(Region).where(Region.is_active.is_(True)).order_by(Region.id),
    )
    return list(result.scalars().all())


async def list_active_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(
        select(Category)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.id),
    )
    return list(result.scalars().all())


async def list_active_products(db: AsyncSession) -> list[Product]:
    result = await db.execute(
        select(Product)
        .where(Product.is_active.is_(True))
        .order_by(Product.category_id, Product.sort_order, Product.id),
    )
    return list(result.scalars().all())


async def get_active_products_by_ids(
    db: AsyncSession,
    product_ids: Iterable[int],
) -> dict[int, Product]:
    """Загрузить активные товары одним запросом.

    Returns
    -------
    dict[int, Product]
        Найденные товары по id. Отсутствующих и неактивных в словаре нет.
    """

    ids = list(product_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Product).where(Product.id.in_(ids), Product.is_active.is_(True)),
    )
    return {product.id: product for product in result.scalars().all()}
