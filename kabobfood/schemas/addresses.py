"""Схемы адресов доставки."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AddressIn(BaseModel):
    """Создание/замена адреса."""

    region_id: int
    street: str = Field(min_length=1, max_length=255)
    house: str = Field(min_length=1, max_length=64)
    entrance: str = Field("", max_length=64)
    flat: str = Field("", max_length=64)
    comment: str = Field("", max_length=1024)
    is_default: bool = False


class AddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    region_id: int
    street: str
    house: str
    entrance: str
    flat: str
    comment: str
    is_default: bool
    created_at: datetime


class AddressesResponse(BaseModel):
    addresses: list[AddressOut]
