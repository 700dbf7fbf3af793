"""Схемы каталога: меню, регионы и их админские формы."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RegionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    delivery_price: float
    is_active: bool


class RegionsResponse(BaseModel):
    regions: list[RegionOut]


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    description: str
    price: float
    old_price: float | None = None
    image_url: str
    is_active: bool
    sort_order: int


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    emoji: str
    sort_order: int
    is_active: bool


class MenuCategoryOut(BaseModel):
    """Категория меню вместе с активными товарами."""

    id: int
    name: str
    emoji: str
    sort_order: int
    products: list[ProductOut]


class MenuResponse(BaseModel):
    categories: list[MenuCategoryOut]


class CategoryIn(BaseModel):
    """Создание/замена категории (админ)."""

    name: str = Field(min_length=1, max_length=255)
    emoji: str = Field("", max_length=16)
    sort_order: int = 0
    is_active: bool = True


class ProductIn(BaseModel):
    """Создание/замена товара (админ)."""

    category_id: int
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    price: float = Field(ge=0)
    old_price: float | None = Field(None, ge=0)
    image_url: str = Field("", max_length=1024)
    is_active: bool = True
    sort_order: int = 0


class RegionIn(BaseModel):
    """Создание/замена региона доставки (админ)."""

    name: str = Field(min_length=1, max_length=255)
    delivery_price: float = Field(0.0, ge=0)
    is_active: bool = True
