"""Эндпоинты адресов доставки текущего пользователя."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.api.deps import get_current_user
from kabobfood.db.session import get_db
from kabobfood.models.user import User
from kabobfood.schemas.addresses import AddressesResponse, AddressIn, AddressOut
from kabobfood.services.addresses import (
    create_address,
    delete_address,
    list_addresses,
    update_address,
)

router = APIRouter()


@router.get("/addresses", response_model=AddressesResponse)
async def list_addresses_endpoint(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressesResponse:
    addresses = await list_addresses(db, current_user.id)
    return AddressesResponse(addresses=[AddressOut.model_validate(a) for a in addresses])


@router.post("/addresses", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
async def create_address_endpoint(
    payload: AddressIn,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressOut:
    """Добавить адрес.

    Raises
    ------
    InvalidRegion
        400, если регион не существует.
    """

    address = await create_address(db, current_user.id, payload)
    return AddressOut.model_validate(address)


@router.put("/addresses/{address_id}", response_model=AddressOut)
async def update_address_endpoint(
    address_id: int,
    payload: AddressIn,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AddressOut:
    """Заменить адрес. Чужой или несуществующий адрес - 404."""

    address = await update_address(db, current_user.id, address_id, payload)
    return AddressOut.model_validate(address)


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address_endpoint(
    address_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    await delete_address(db, current_user.id, address_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
