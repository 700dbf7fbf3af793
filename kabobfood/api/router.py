"""Сборка всех роутеров API."""

from fastapi import APIRouter

from kabobfood.api.routes import addresses, admin, auth, catalog, health, orders, profile
from kabobfood.core import metrics

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(metrics.router, tags=["health"])
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(catalog.router, tags=["catalog"])
api_router.include_router(profile.router, tags=["profile"])
api_router.include_router(addresses.router, tags=["addresses"])
api_router.include_router(orders.router, tags=["orders"])
api_router.include_router(admin.router, tags=["admin"])
