"""Уведомления о заказах в Telegram (best-effort).

Сервис только формирует текст и ставит задачу в Celery. Постановка
(синхронный `apply_async` с обращением к брокеру) выполняется в пуле
потоков, чтобы не блокировать event loop. Любая ошибка постановки
логируется и проглатывается: уведомление не может сломать или откатить
заказ.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from loguru import logger

from kabobfood.tasks import send_telegram_message


@dataclass(frozen=True)
class OrderInfo:
    """Данные заказа для текста уведомления."""

    order_id: int
    status: str
    total: float
    customer_name: str
    customer_phone: str


def order_created_admin_text(info: OrderInfo) -> str:
    return (
        f"Новый заказ #{info.order_id} от {info.customer_name} "
        f"({info.customer_phone}) на сумму {info.total:.2f}"
    )


def order_created_user_text(info: OrderInfo) -> str:
    return f"Ваш заказ #{info.order_id} принят. Статус: {info.status.title()}"


def status_changed_text(info: OrderInfo) -> str:
    return f"Статус заказа #{info.order_id} изменён на {info.status}"


class TelegramNotifier:
    """Отправка уведомлений пользователю и в админский чат.

    Parameters
    ----------
    enabled : bool
        False, если токен бота не задан: тогда ничего не отправляется.
    admin_chat_id : str | None
        Чат операторов. Если не задан, админ не уведомляется.
    """

    def __init__(self, enabled: bool, admin_chat_id: str | None = None) -> None:
        self.enabled = enabled
        self.admin_chat_id = admin_chat_id or None

    async def _enqueue(self, chat_id: str, text: str) -> None:
        try:
            await asyncio.to_thread(
                send_telegram_message.apply_async,
                args=(chat_id, text),
                retry=False,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to enqueue telegram message chat_id={chat}: {err}",
                chat=chat_id,
                err=str(exc),
            )

    async def notify_order_created(self, info: OrderInfo, user_chat_id: int | None) -> None:
        if not self.enabled:
            return
        if self.admin_chat_id:
            await self._enqueue(self.admin_chat_id, order_created_admin_text(info))
        if user_chat_id:
            await self._enqueue(str(user_chat_id), order_created_user_text(info))

    async def notify_status_changed(self, info: OrderInfo, user_chat_id: int | None) -> None:
        if not self.enabled:
            return
        text = status_changed_text(info)
        if user_chat_id:
            await self._enqueue(str(user_chat_id), text)
        if self.admin_chat_id:
            await self._enqueue(self.admin_chat_id, text)
