"""Профиль пользователя: данные пользователя и его адреса."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.models.user import User
from kabobfood.schemas.addresses import AddressOut
from kabobfood.schemas.auth import UserOut
from kabobfood.schemas.profile import ProfileOut
from kabobfood.services.addresses import list_addresses


async def get_profile(db: AsyncSession, user: User) -> ProfileOut:
    addresses = await list_addresses(db, user.id)
    return ProfileOut(
        user=UserOut.model_validate(user),
        addresses=[AddressOut.model_validate(a) for a in addresses],
    )
