"""Адреса доставки пользователя.

У пользователя не больше одного адреса по умолчанию: перед установкой
`is_default=True` флаг снимается со всех остальных адресов в той же
транзакции.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.core.errors import AddressNotFound, InvalidRegion
from kabobfood.models.address import Address
from kabobfood.models.catalog import Region
from kabobfood.schemas.addresses import AddressIn


async def list_addresses(db: AsyncSession, user_id: int) -> list[Address]:
    """Адреса пользователя: сначала адрес по умолчанию, затем новые."""

    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc()),
    )
    return list(result.scalars().all())


async def get_user_address(db: AsyncSession, user_id: int, address_id: int) -> Address | None:
    """Адрес по id, только если он принадлежит пользователю."""

    result = await db.execute(
        select(Address).where(Address.id == address_id, Address.user_id == user_id),
    )
    return result.scalar_one_or_none()


async def _ensure_region(db: AsyncSession, region_id: int) -> None:
    if await db.get(Region, region_id) is None:
        raise InvalidRegion()


async def _clear_defaults(db: AsyncSession, user_id: int) -> None:
    await db.execute(
        update(Address)
        .where(Address.user_id == user_id, Address.is_default.is_(True))
        .values(is_default=False),
    )


async def create_address(db: AsyncSession, user_id: int, data: AddressIn) -> Address:
    await _ensure_region(db, data.region_id)
    if data.is_default:
        await _clear_defaults(db, user_id)
    address = Address(user_id=user_id, **data.model_dump())
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


async def update_address(
    db: AsyncSession,
    user_id: int,
    address_id: int,
    data: AddressIn,
) -> Address:
    """Заменить поля адреса.

    Raises
    ------
    AddressNotFound
        Адреса нет или он чужой.
    InvalidRegion
        Регион не существует.
    """

    address = await get_user_address(db, user_id, address_id)
    if address is None:
        raise AddressNotFound()
    await _ensure_region(db, data.region_id)
    if data.is_default:
        await _clear_defaults(db, user_id)
    for field, value in data.model_dump().items():
        setattr(address, field, value)
    await db.commit()
    await db.refresh(address)
    return address


async def delete_address(db: AsyncSession, user_id: int, address_id: int) -> None:
    address = await get_user_address(db, user_id, address_id)
    if address is None:
        raise AddressNotFound()
    await db.delete(address)
    await db.commit()
