"""Middleware для rate limiting (best-effort, in-memory)."""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from kabobfood.core.config import Settings
from kabobfood.core.rate_limiter import RateLimiter
from kabobfood.core.state_store import InMemoryStateStore


def build_rate_limiters(settings: Settings) -> tuple[RateLimiter, RateLimiter]:
    """Создать пару лимитеров (пользовательский, админский) по настройкам.

    Оба лимитера делят одно хранилище, ключи разведены префиксом.
    """

    store = InMemoryStateStore()
    user_limiter = RateLimiter.per_window(
        settings.rate_limit_user_limit,
        settings.rate_limit_window_seconds,
        store=store,
    )
    admin_limiter = RateLimiter.per_window(
        settings.rate_limit_admin_limit,
        settings.rate_limit_window_seconds,
        store=store,
    )
    return user_limiter, admin_limiter


def _get_client_key(request: Request) -> str:
    """Получить ключ rate limiting для запроса."""

    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client is None:
        return "unknown"
    return request.client.host


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Ограничение частоты запросов на уровне middleware.

    Запросы к `/admin/*` расходуют админский бюджет, остальные -
    пользовательский.
    """

    _skip_paths = {
        "/healthz",
        "/version",
        "/metrics",
        "/docs",
        "/openapi.json",
        "/redoc",
    }

    def __init__(
        self,
        app: ASGIApp,
        *,
        user_limiter: RateLimiter,
        admin_limiter: RateLimiter,
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self.user_limiter = user_limiter
        self.admin_limiter = admin_limiter
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self.enabled:
            return await call_next(request)

        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path in self._skip_paths:
            return await call_next(request)

        if path == "/admin" or path.startswith("/admin/"):
            scope, limiter = "admin", self.admin_limiter
        else:
            scope, limiter = "user", self.user_limiter

        key = f"{scope}:{_get_client_key(request)}"
        if not limiter.allow(key=key, cost=1):
            return JSONResponse(
                status_code=429,
                content={"detail": "rate limit exceeded"},
            )

        return await call_next(request)
