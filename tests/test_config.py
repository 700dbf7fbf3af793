"""Тесты настроек приложения."""

from __future__ import annotations

import pytest

from kabobfood.core.config import Settings


def test_async_url_derived_from_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:app@db:5432/kabob")

    settings = Settings()

    assert settings.sqlalchemy_url == "postgresql://app:app@db:5432/kabob"
    assert settings.sqlalchemy_async_url == "postgresql+asyncpg://app:app@db:5432/kabob"


def test_cors_origins_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "CORS_ALLOW_ORIGINS",
        "https://A.example.com/, https://a.example.com,https://b.io",
    )

    assert Settings().cors_origins_list == ["https://a.example.com", "https://b.io"]


def test_blank_bot_token_means_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "   ")

    assert Settings().bot_token_value is None


def test_short_secret_key_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "short")

    with pytest.raises(ValueError):
        Settings()
