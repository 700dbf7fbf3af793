"""Утилиты для тестов (TestClient + async SQLite + фейки Redis/уведомлений)."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import time
import uuid
from pathlib import Path
from typing import NamedTuple
from urllib.parse import urlencode

from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

import kabobfood.models  # noqa: F401  # регистрирует таблицы в Base.metadata
from kabobfood.api.deps import get_notifier
from kabobfood.core.security import create_access_token
from kabobfood.db.base import Base
from kabobfood.db.redis import get_redis
from kabobfood.db.session import get_db
from kabobfood.main import create_app
from kabobfood.models import Address, Category, Order, Product, Region, User

BOT_TOKEN = "123456:TEST-BOT-TOKEN"


class FakeRedis:
    """Простой in-memory async Redis для тестов."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.deleted: list[str] = []

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:  # noqa: ARG002
        self.data[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.deleted.append(key)
            self.data.pop(key, None)


class BrokenRedis:
    """Redis-клиент, который всегда падает (симуляция Redis down)."""

    async def get(self, key: str) -> str | None:  # noqa: ARG002
        raise ConnectionError("redis is down")

    async def set(self, key: str, value: str, ex: int | None = None) -> None:  # noqa: ARG002
        raise ConnectionError("redis is down")

    async def delete(self, *keys: str) -> None:  # noqa: ARG002
        raise ConnectionError("redis is down")


class RecordingNotifier:
    """Запоминает уведомления вместо постановки задач в Celery."""

    def __init__(self) -> None:
        self.created: list[tuple[int, int | None]] = []
        self.status_changed: list[tuple[int, str, int | None]] = []

    async def notify_order_created(self, info, user_chat_id):  # noqa: ANN001
        self.created.append((info.order_id, user_chat_id))

    async def notify_status_changed(self, info, user_chat_id):  # noqa: ANN001
        self.status_changed.append((info.order_id, info.status, user_chat_id))


class FailingNotifier:
    """Падает на каждом уведомлении, как недоступный брокер."""

    async def notify_order_created(self, info, user_chat_id):  # noqa: ANN001
        raise ConnectionError("broker down")

    async def notify_status_changed(self, info, user_chat_id):  # noqa: ANN001
        raise ConnectionError("broker down")


class AppHarness(NamedTuple):
    client: TestClient
    sessions: async_sessionmaker[AsyncSession]
    notifier: RecordingNotifier
    cache: FakeRedis | BrokenRedis


def make_client(tmp_path: Path, cache: FakeRedis | BrokenRedis | None = None) -> AppHarness:
    """Собрать TestClient с тестовой SQLite БД (async).

    Parameters
    ----------
    tmp_path : pathlib.Path
        Временная директория pytest.
    cache : FakeRedis | BrokenRedis | None
        Подменный Redis (по умолчанию пустой FakeRedis).

    Returns
    -------
    AppHarness
        (клиент, фабрика сессий, записывающий уведомитель, фейковый Redis).
    """

    db_path = tmp_path / "test.db"
    engine: AsyncEngine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        poolclass=NullPool,
    )
    testing_session_local: async_sessionmaker[AsyncSession] = async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )

    async def _init_schema() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_init_schema())

    app = create_app()
    notifier = RecordingNotifier()
    cache = cache if cache is not None else FakeRedis()

    async def override_get_db():  # noqa: ANN001
        async with testing_session_local() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: cache
    app.dependency_overrides[get_notifier] = lambda: notifier
    return AppHarness(TestClient(app), testing_session_local, notifier, cache)


def run(coro):  # noqa: ANN001,ANN201
    """Выполнить корутину вне приложения."""

    return asyncio.run(coro)


def seed(sessions: async_sessionmaker[AsyncSession], *objects):  # noqa: ANN201
    """Сохранить объекты в БД и вернуть их с заполненными id."""

    async def _seed():
        async with sessions() as db:
            db.add_all(objects)
            await db.commit()
            for obj in objects:
                await db.refresh(obj)
        return objects

    result = run(_seed())
    return result[0] if len(result) == 1 else result


def count_orders(sessions: async_sessionmaker[AsyncSession]) -> int:
    async def _count() -> int:
        async with sessions() as db:
            return int(await db.scalar(select(func.count()).select_from(Order)))

    return run(_count())


def make_user(sessions, telegram_id: int = 1001, **fields) -> User:  # noqa: ANN001
    fields.setdefault("first_name", "Ali")
    fields.setdefault("phone", "+79990000000")
    return seed(sessions, User(telegram_id=telegram_id, **fields))


def make_catalog(sessions) -> tuple[Region, Product]:  # noqa: ANN001
    """Регион с доставкой 5.0 и активный товар по 12.5."""

    region = seed(sessions, Region(name="Center", delivery_price=5.0, is_active=True))
    category = seed(sessions, Category(name="Kebab", emoji="🍢", sort_order=1))
    product = seed(
        sessions,
        Product(category_id=category.id, name="Lula kebab", price=12.5, is_active=True),
    )
    return region, product


def make_address(sessions, user: User, region: Region, **fields) -> Address:  # noqa: ANN001
    fields.setdefault("street", "Lenina")
    fields.setdefault("house", "1")
    return seed(sessions, Address(user_id=user.id, region_id=region.id, **fields))


def user_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, "user", telegram_id=user.telegram_id)
    return {"Authorization": f"Bearer {token}"}


def admin_headers(admin_id: int = 1) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_id, 'admin')}"}


def order_payload(region: Region, product: Product, **fields) -> dict:  # noqa: ANN001
    payload = {
        "client_request_id": str(uuid.uuid4()),
        "type": "pickup",
        "region_id": region.id,
        "payment_method": "cash",
        "customer_name": "Ali",
        "customer_phone": "+79990000000",
        "items": [{"product_id": product.id, "qty": 1}],
    }
    payload.update(fields)
    return payload


def signed_init_data(
    bot_token: str = BOT_TOKEN,
    *,
    user: dict | str | None = None,
    auth_date: int | None = None,
    extra: dict[str, str] | None = None,
) -> str:
    """Собрать initData так, как её подписывает Telegram."""

    fields: dict[str, str] = {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "auth_date": str(auth_date if auth_date is not None else int(time.time())),
    }
    if user is not None:
        fields["user"] = user if isinstance(user, str) else json.dumps(user)
    fields.update(extra or {})

    check_string = "\n".join(sorted(f"{k}={v}" for k, v in fields.items()))
    secret = hashlib.sha256(bot_token.encode()).digest()
    fields["hash"] = hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode(fields)
