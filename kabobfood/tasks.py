"""Celery задачи (фоновые отправки в Telegram).

Важно
-----
API не ходит в Telegram синхронно: уведомление кладётся в очередь Celery
(брокер по умолчанию Redis), а воркер отправляет его с повторами.
"""

from __future__ import annotations

import requests
from celery import Celery
from loguru import logger

from kabobfood.core.config import get_settings

SEND_MESSAGE_TIMEOUT_SECONDS = 10


def make_celery() -> Celery:
    """Создать Celery приложение.

    Returns
    -------
    celery.Celery
        Celery app.
    """

    settings = get_settings()
    celery_app = Celery(
        "kabobfood",
        broker=settings.effective_celery_broker_url,
        backend=settings.effective_celery_result_backend,
    )
    celery_app.conf.update(
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_ignore_result=True,
        worker_prefetch_multiplier=1,
    )
    return celery_app


celery_app = make_celery()


def post_telegram_message(chat_id: str, text: str) -> None:
    """Отправить сообщение через Bot API `sendMessage`.

    Raises
    ------
    requests.RequestException
        Сетевая ошибка или ответ не 2xx.
    """

    settings = get_settings()
    token = settings.bot_token_value
    if token is None:
        logger.warning("Telegram bot token is not configured, message dropped")
        return

    response = requests.post(
        f"{settings.telegram_api_url.rstrip('/')}/bot{token}/sendMessage",
        data={"chat_id": chat_id, "text": text},
        timeout=SEND_MESSAGE_TIMEOUT_SECONDS,
    )
    response.raise_for_status()


@celery_app.task(
    name="send_telegram_message",
    autoretry_for=(requests.RequestException,),
    retry_backoff=True,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def send_telegram_message(chat_id: str, text: str) -> None:
    """Celery-задача отправки сообщения в чат Telegram."""

    post_telegram_message(chat_id, text)
    logger.info("Telegram message sent chat_id={chat}", chat=chat_id)
