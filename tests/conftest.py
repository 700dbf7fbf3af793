"""Конфигурация pytest."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# В тестах не запускаем миграции и не ограничиваем частоту запросов.
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-min-32-chars-123456")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-BOT-TOKEN")
os.environ.setdefault("TELEGRAM_INIT_DATA_TTL_SECONDS", "3600")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from kabobfood.core import config as config_module  # noqa: E402

config_module.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Сбрасывать кэш настроек вокруг каждого теста (тесты меняют env)."""

    config_module.get_settings.cache_clear()
    yield
    config_module.get_settings.cache_clear()
