"""Точка входа FastAPI приложения."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from kabobfood.api.router import api_router
from kabobfood.core.config import get_settings
from kabobfood.core.errors import register_error_handlers
from kabobfood.core.logging import setup_logging
from kabobfood.core.metrics import MetricsMiddleware
from kabobfood.core.migrations import run_migrations_once
from kabobfood.core.rate_limit_middleware import RateLimitMiddleware, build_rate_limiters
from kabobfood.db.redis import close_redis_client
from kabobfood.db.session import get_session_factory
from kabobfood.services.admin_auth import ensure_default_admin


async def bootstrap_default_admin() -> None:
    """Создать админа из `ADMIN_DEFAULT_USERNAME/PASSWORD`, если он задан."""

    settings = get_settings()
    username = (settings.admin_default_username or "").strip()
    password = settings.admin_default_password
    if not username or password is None or not password.get_secret_value():
        logger.info("Default admin bootstrap skipped (credentials not configured)")
        return
    async with get_session_factory()() as db:
        await ensure_default_admin(db, username, password.get_secret_value())


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Lifespan приложения.

    На старте: миграции (если включены) и админ по умолчанию.
    На остановке: закрытие Redis клиента.
    """

    await asyncio.to_thread(run_migrations_once)
    await bootstrap_default_admin()
    yield
    await close_redis_client()


def create_app() -> FastAPI:
    """Создать и сконфигурировать экземпляр FastAPI.

    Returns
    -------
    fastapi.FastAPI
        Сконфигурированное приложение.
    """

    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_methods_list,
        allow_headers=settings.cors_headers_list,
    )
    user_limiter, admin_limiter = build_rate_limiters(settings)
    app.add_middleware(
        RateLimitMiddleware,
        user_limiter=user_limiter,
        admin_limiter=admin_limiter,
        enabled=settings.rate_limit_enabled,
    )
    app.add_middleware(MetricsMiddleware)
    register_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
