"""Тесты кеширования меню и регионов в Redis."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kabobfood.models import Category, Product, Region
from kabobfood.services import menu_cache
from kabobfood.services.menu_cache import MENU_CACHE_KEY, REGIONS_CACHE_KEY
from tests.helpers import BrokenRedis, admin_headers, make_catalog, make_client, seed


def test_menu_groups_active_products_by_category(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    region, product = make_catalog(sessions)
    drinks = seed(sessions, Category(name="Drinks", emoji="🥤", sort_order=0))
    seed(sessions, Category(name="Archive", is_active=False))
    seed(
        sessions,
        Product(category_id=drinks.id, name="Ayran", price=3.0),
        Product(category_id=drinks.id, name="Hidden", price=1.0, is_active=False),
    )

    response = client.get("/menu")

    assert response.status_code == 200
    categories = response.json()["categories"]
    assert [c["name"] for c in categories] == ["Drinks", "Kebab"]
    assert [p["name"] for p in categories[0]["products"]] == ["Ayran"]
    assert categories[1]["products"][0]["id"] == product.id
    assert categories[1]["products"][0]["price"] == 12.5


def test_menu_is_cached_after_first_read(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    client, sessions, _, cache = make_client(tmp_path)
    make_catalog(sessions)

    first = client.get("/menu")
    assert MENU_CACHE_KEY in cache.data

    async def _boom(db):  # noqa: ANN001,ARG001
        raise AssertionError("database must not be queried on cache hit")

    monkeypatch.setattr(menu_cache, "list_active_categories", _boom)
    second = client.get("/menu")

    assert second.status_code == 200
    assert second.json() == first.json()


def test_menu_served_from_db_when_redis_is_down(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path, cache=BrokenRedis())
    make_catalog(sessions)

    response = client.get("/menu")
    assert response.status_code == 200
    assert response.json()["categories"][0]["name"] == "Kebab"

    response = client.get("/regions")
    assert response.status_code == 200
    assert response.json()["regions"][0]["delivery_price"] == 5.0


def test_admin_writes_succeed_when_redis_is_down(tmp_path: Path) -> None:
    client, _, _, _ = make_client(tmp_path, cache=BrokenRedis())

    response = client.post("/admin/categories", headers=admin_headers(), json={"name": "Soups"})

    assert response.status_code == 201


def test_malformed_cache_entry_falls_back_to_db(tmp_path: Path) -> None:
    client, sessions, _, cache = make_client(tmp_path)
    make_catalog(sessions)
    cache.data[MENU_CACHE_KEY] = json.dumps({"unexpected": True})
    cache.data[REGIONS_CACHE_KEY] = "{not json"

    menu = client.get("/menu")
    regions = client.get("/regions")

    assert menu.json()["categories"][0]["name"] == "Kebab"
    assert regions.json()["regions"][0]["name"] == "Center"
    assert json.loads(cache.data[MENU_CACHE_KEY])["categories"][0]["name"] == "Kebab"


def test_catalog_writes_invalidate_cache(tmp_path: Path) -> None:
    client, sessions, _, cache = make_client(tmp_path)
    _, product = make_catalog(sessions)
    client.get("/menu")
    client.get("/regions")
    assert {MENU_CACHE_KEY, REGIONS_CACHE_KEY} <= set(cache.data)

    response = client.put(
        f"/admin/products/{product.id}",
        headers=admin_headers(),
        json={"category_id": product.category_id, "name": "Lula kebab", "price": 14.0},
    )
    assert response.status_code == 200
    assert MENU_CACHE_KEY not in cache.data
    assert REGIONS_CACHE_KEY in cache.data
    assert client.get("/menu").json()["categories"][0]["products"][0]["price"] == 14.0

    response = client.post(
        "/admin/regions",
        headers=admin_headers(),
        json={"name": "North", "delivery_price": 7.0},
    )
    assert response.status_code == 201
    assert MENU_CACHE_KEY not in cache.data
    assert REGIONS_CACHE_KEY not in cache.data
    assert [r["name"] for r in client.get("/regions").json()["regions"]] == ["Center", "North"]


def test_inactive_regions_hidden(tmp_path: Path) -> None:
    client, sessions, _, _ = make_client(tmp_path)
    make_catalog(sessions)
    seed(sessions, Region(name="Closed", is_active=False))

    assert [r["name"] for r in client.get("/regions").json()["regions"]] == ["Center"]
