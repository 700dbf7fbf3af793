"""Публичный каталог: меню и регионы доставки (с кешем)."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.config import get_settings
from kabobfood.db.redis import get_redis
from kabobfood.db.session import get_db
from kabobfood.schemas.catalog import MenuResponse, RegionsResponse
from kabobfood.services.menu_cache import get_menu, get_regions

router = APIRouter()


@router.get("/menu", response_model=MenuResponse)
async def menu_endpoint(
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> MenuResponse:
    """Активные категории с активными товарами."""

    return await get_menu(db, cache, get_settings().menu_cache_ttl_seconds)


@router.get("/regions", response_model=RegionsResponse)
async def regions_endpoint(
    db: AsyncSession = Depends(get_db),
    cache: Redis = Depends(get_redis),
) -> RegionsResponse:
    """Активные регионы доставки."""

    return await get_regions(db, cache, get_settings().regions_cache_ttl_seconds)
