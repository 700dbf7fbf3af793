"""Запуск Alembic миграций при старте API.

Для Postgres миграции выполняются под advisory lock: при нескольких
репликах API схему обновляет ровно один процесс, остальные ждут.
"""

from __future__ import annotations

import time
import zlib
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from alembic import command
from alembic.config import Config
from loguru import logger

from kabobfood.core.config import Settings, get_settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"


def _is_postgres(url: str) -> bool:
    return url.startswith(("postgresql://", "postgres://"))


def make_alembic_config(database_url: str) -> Config:
    """Собрать конфиг Alembic с переопределённым URL БД."""

    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _wait_for_postgres(settings: Settings) -> None:
    """Подождать, пока Postgres начнёт принимать соединения."""

    tries = settings.migrations_wait_tries
    sleep_seconds = settings.migrations_wait_sleep_seconds

    for attempt in range(1, tries + 1):
        try:
            psycopg2.connect(settings.sqlalchemy_url).close()
            return
        except psycopg2.OperationalError:
            logger.info(
                "DB not ready yet ({i}/{n}), sleep {s}s",
                i=attempt,
                n=tries,
                s=sleep_seconds,
            )
            time.sleep(sleep_seconds)

    raise RuntimeError("database is not reachable for migrations")


@contextmanager
def _pg_advisory_lock(database_url: str, lock_key: int):
    """Держать `pg_advisory_lock` на время блока."""

    conn = psycopg2.connect(database_url)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT pg_advisory_lock(%s)", (lock_key,))
        yield
    finally:
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT pg_advisory_unlock(%s)", (lock_key,))
        finally:
            conn.close()


def run_migrations_once() -> None:
    """Обновить схему до head, если `RUN_MIGRATIONS_ON_STARTUP` включён."""

    settings = get_settings()
    if not settings.run_migrations_on_startup:
        logger.info("Migrations on startup disabled")
        return

    db_url = settings.sqlalchemy_url
    cfg = make_alembic_config(db_url)

    if not _is_postgres(db_url):
        logger.info("Running alembic upgrade head (non-postgres)")
        command.upgrade(cfg, "head")
        logger.info("Migrations completed")
        return

    _wait_for_postgres(settings)
    lock_key = zlib.crc32(f"{settings.app_name}:migrations".encode("utf-8"))
    logger.info("Acquiring advisory lock key={k}", k=lock_key)
    with _pg_advisory_lock(db_url, lock_key):
        logger.info("Running alembic upgrade head (postgres)")
        command.upgrade(cfg, "head")
    logger.info("Migrations completed")
