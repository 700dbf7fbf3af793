"""Меню и регионы с кешированием в Redis (best-effort).

Правило
-------
Ошибки Redis никогда не должны "ронять" API. Промах, ошибка чтения или
битое значение в кеше означают чтение из БД; ошибка записи игнорируется.
Админские изменения каталога удаляют ключи, а не обновляют их.
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.db.redis import dumps_json, loads_json
from kabobfood.schemas.catalog import (
    MenuCategoryOut,
    MenuResponse,
    ProductOut,
    RegionOut,
    RegionsResponse,
)
from kabobfood.services.catalog import (
    list_active_categories,
    list_active_products,
    list_active_regions,
)

MENU_CACHE_KEY = "menu:v1"
REGIONS_CACHE_KEY = "regions:v1"


async def _cache_get(client: Redis, key: str) -> object | None:
    try:
        value = await client.get(key)
        if value is None:
            return None
        return loads_json(value)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Redis cache get failed for key={key}: {err}",
            key=key,
            err=str(exc),
        )
        return None


async def _cache_set(client: Redis, key: str, value: object, ttl_seconds: int) -> bool:
    try:
        await client.set(key, dumps_json(value), ex=ttl_seconds)
        return True
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Redis cache set failed for key={key}: {err}",
            key=key,
            err=str(exc),
        )
        return False


async def invalidate_cache(client: Redis, *keys: str) -> bool:
    """Удалить ключи кеша.

    Returns
    -------
    bool
        True если удалось выполнить операцию, иначе False.
    """

    try:
        await client.delete(*keys)
        return True
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Redis cache delete failed for keys={keys}: {err}",
            keys=",".join(keys),
            err=str(exc),
        )
        return False


def build_menu(categories, products) -> MenuResponse:
    """Разложить активные товары по активным категориям.

    Товары категорий, которых нет среди активных, в меню не попадают.
    """

    grouped: dict[int, list[ProductOut]] = {category.id: [] for category in categories}
    for product in products:
        bucket = grouped.get(product.category_id)
        if bucket is not None:
            bucket.append(ProductOut.model_validate(product))

    return MenuResponse(
        categories=[
            MenuCategoryOut(
                id=category.id,
                name=category.name,
                emoji=category.emoji,
                sort_order=category.sort_order,
                products=grouped[category.id],
            )
            for category in categories
        ],
    )


async def get_menu(db: AsyncSession, client: Redis, ttl_seconds: int) -> MenuResponse:
    """Меню из кеша или из БД (с последующей записью в кеш)."""

    cached = await _cache_get(client, MENU_CACHE_KEY)
    if cached is not None:
        try:
            return MenuResponse.model_validate(cached)
        except ValidationError:
            logger.warning("Malformed menu cache entry, reloading from DB")

    menu = build_menu(
        await list_active_categories(db),
        await list_active_products(db),
    )
    await _cache_set(client, MENU_CACHE_KEY, menu.model_dump(mode="json"), ttl_seconds)
    return menu


async def get_regions(db: AsyncSession, client: Redis, ttl_seconds: int) -> RegionsResponse:
    """Активные регионы из кеша или из БД."""

    cached = await _cache_get(client, REGIONS_CACHE_KEY)
    if cached is not None:
        try:
            return RegionsResponse.model_validate(cached)
        except ValidationError:
            logger.warning("Malformed regions cache entry, reloading from DB")

    regions = RegionsResponse(
        regions=[RegionOut.model_validate(r) for r in await list_active_regions(db)],
    )
    await _cache_set(
        client,
        REGIONS_CACHE_KEY,
        regions.model_dump(mode="json"),
        ttl_seconds,
    )
    return regions
