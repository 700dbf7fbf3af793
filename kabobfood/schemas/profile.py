"""Схема профиля пользователя."""

from __future__ import annotations

from pydantic import BaseModel

from kabobfood.schemas.addresses import AddressOut
from kabobfood.schemas.auth import UserOut


class ProfileOut(BaseModel):
    user: UserOut
    addresses: list[AddressOut]
