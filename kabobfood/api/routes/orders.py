"""Эндпоинты заказов пользователя."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from kabobfood.api.deps import get_current_user, get_notifier
from kabobfood.db.session import get_db
from kabobfood.models.user import User
from kabobfood.schemas.orders import OrderCreate, OrderOut, OrdersResponse
from kabobfood.services.notifications import TelegramNotifier
from kabobfood.services.orders import create_order, get_user_order, list_orders_by_user

router = APIRouter()


@router.post(
    "/orders",
    response_model=OrderOut,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_200_OK: {"model": OrderOut, "description": "Replayed request"}},
)
async def create_order_endpoint(
    payload: OrderCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: TelegramNotifier = Depends(get_notifier),
) -> OrderOut:
    """Создать заказ (только авторизованные).

    Parameters
    ----------
    payload : OrderCreate
        Тип, регион, адрес, оплата и позиции (product_id, qty).

    Returns
    -------
    OrderOut
        Сохранённый заказ с ценами каталога. 201 для нового заказа,
        200 для повтора с тем же `client_request_id`.

    Raises
    ------
    DomainError
        400 с кодом ошибки валидации, 401 без токена.
    """

    result = await create_order(db, current_user.id, payload, notifier)
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return OrderOut.model_validate(result.order)


@router.get("/orders", response_model=OrdersResponse)
async def list_orders_endpoint(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrdersResponse:
    """Последние заказы пользователя, новые первыми."""

    orders = await list_orders_by_user(db, current_user.id)
    return OrdersResponse(orders=[OrderOut.model_validate(o) for o in orders])


@router.get("/orders/{order_id}", response_model=OrderOut)
async def get_order_endpoint(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderOut:
    """Получить заказ по id.

    Raises
    ------
    OrderNotFound
        404, если заказа нет или он принадлежит другому пользователю.
    """

    order = await get_user_order(db, current_user.id, order_id)
    return OrderOut.model_validate(order)
