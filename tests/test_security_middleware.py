"""Тесты middleware: rate limiting, CORS, метрики."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import admin_headers, make_client


def test_rate_limit_returns_429(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
    monkeypatch.setenv("RATE_LIMIT_USER_LIMIT", "2")
    monkeypatch.setenv("RATE_LIMIT_ADMIN_LIMIT", "3")
    client, _, _, _ = make_client(tmp_path)

    assert client.get("/menu").status_code == 200
    assert client.get("/menu").status_code == 200
    response = client.get("/menu")
    assert response.status_code == 429
    assert response.json() == {"detail": "rate limit exceeded"}

    # У админских маршрутов собственный бюджет.
    assert client.get("/admin/orders", headers=admin_headers()).status_code == 200

    # Служебные эндпоинты не ограничиваются.
    for _ in range(5):
        assert client.get("/healthz").status_code == 200


def test_rate_limit_keys_by_forwarded_ip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
    monkeypatch.setenv("RATE_LIMIT_USER_LIMIT", "1")
    client, _, _, _ = make_client(tmp_path)

    assert client.get("/regions", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/regions", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
    other_client = client.get("/regions", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"})
    assert other_client.status_code == 200


def test_cors_preflight(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://mini.example.com/")
    client, _, _, _ = make_client(tmp_path)

    response = client.options(
        "/orders",
        headers={
            "Origin": "https://mini.example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://mini.example.com"


def test_health_version_and_metrics(tmp_path: Path) -> None:
    client, _, _, _ = make_client(tmp_path)

    assert client.get("/healthz").json() == {"status": "ok"}
    assert "version" in client.get("/version").json()

    client.get("/menu")
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "kabobfood_requests_total" in metrics.text
