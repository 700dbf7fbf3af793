"""Redis клиент и хелперы.

Важно
-----
Redis - *опциональная* зависимость API: при ошибках Redis эндпоинты
не должны падать, данные читаются из БД.
"""

from __future__ import annotations

import json

from redis.asyncio import ConnectionPool, Redis

from kabobfood.core.config import get_settings

_client: Redis | None = None


def get_redis_client() -> Redis:
    """Получить singleton async Redis клиент (через pool).

    Returns
    -------
    redis.asyncio.Redis
        Клиент Redis. Соединение открывается лениво при первой команде.
    """

    global _client  # noqa: PLW0603
    if _client is not None:
        return _client

    settings = get_settings()
    pool = ConnectionPool(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        decode_responses=True,
        max_connections=20,
        socket_timeout=1.0,
        socket_connect_timeout=1.0,
    )
    _client = Redis(connection_pool=pool)
    return _client


async def close_redis_client() -> None:
    """Закрыть клиент при остановке приложения."""

    global _client  # noqa: PLW0603
    if _client is None:
        return
    await _client.aclose()
    _client = None


def get_redis() -> Redis:
    """FastAPI dependency: Redis клиент (в тестах подменяется фейком)."""

    return get_redis_client()


def dumps_json(value: object) -> str:
    """Сериализовать объект в JSON строку."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def loads_json(value: str) -> object:
    """Десериализовать JSON строку."""

    return json.loads(value)
