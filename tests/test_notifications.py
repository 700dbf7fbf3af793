"""Тесты уведомлений о заказах."""

from __future__ import annotations

import asyncio
import threading

import pytest

from kabobfood import tasks
from kabobfood.services import notifications
from kabobfood.services.notifications import (
    OrderInfo,
    TelegramNotifier,
    order_created_admin_text,
    order_created_user_text,
    status_changed_text,
)

INFO = OrderInfo(
    order_id=42,
    status="new",
    total=30.0,
    customer_name="Ali",
    customer_phone="+79990000000",
)


class RecordingTask:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple] = []

    def apply_async(self, args, retry):  # noqa: ANN001
        self.calls.append(args)
        if self.error is not None:
            raise self.error


def test_texts() -> None:
    assert order_created_admin_text(INFO) == "Новый заказ #42 от Ali (+79990000000) на сумму 30.00"
    assert order_created_user_text(INFO) == "Ваш заказ #42 принят. Статус: New"
    assert status_changed_text(INFO) == "Статус заказа #42 изменён на new"


def test_order_created_goes_to_admin_and_user(monkeypatch: pytest.MonkeyPatch) -> None:
    task = RecordingTask()
    monkeypatch.setattr(notifications, "send_telegram_message", task)

    asyncio.run(TelegramNotifier(enabled=True, admin_chat_id="-100").notify_order_created(INFO, 555))

    assert task.calls == [
        ("-100", order_created_admin_text(INFO)),
        ("555", order_created_user_text(INFO)),
    ]


def test_disabled_notifier_sends_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    task = RecordingTask()
    monkeypatch.setattr(notifications, "send_telegram_message", task)

    notifier = TelegramNotifier(enabled=False, admin_chat_id="-100")
    asyncio.run(notifier.notify_order_created(INFO, 555))
    asyncio.run(notifier.notify_status_changed(INFO, 555))

    assert task.calls == []


def test_status_change_without_admin_chat(monkeypatch: pytest.MonkeyPatch) -> None:
    task = RecordingTask()
    monkeypatch.setattr(notifications, "send_telegram_message", task)

    asyncio.run(TelegramNotifier(enabled=True, admin_chat_id="").notify_status_changed(INFO, 555))

    assert task.calls == [("555", status_changed_text(INFO))]


def test_enqueue_failure_is_swallowed(monkeypatch: pytest.MonkeyPatch) -> None:
    task = RecordingTask(error=ConnectionError("broker down"))
    monkeypatch.setattr(notifications, "send_telegram_message", task)

    asyncio.run(TelegramNotifier(enabled=True, admin_chat_id="-100").notify_order_created(INFO, 555))

    assert len(task.calls) == 2


def test_post_telegram_message_calls_bot_api(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []

    class _Response:
        def raise_for_status(self) -> None:
            return None

    def fake_post(url: str, **kwargs) -> _Response:
        calls.append({"url": url, **kwargs})
        return _Response()

    monkeypatch.setattr(tasks.requests, "post", fake_post)

    tasks.post_telegram_message("555", "hello")

    assert calls[0]["url"] == "https://api.telegram.org/bot123456:TEST-BOT-TOKEN/sendMessage"
    assert calls[0]["data"] == {"chat_id": "555", "text": "hello"}
    assert calls[0]["timeout"] == tasks.SEND_MESSAGE_TIMEOUT_SECONDS


def test_enqueue_runs_off_event_loop_thread(monkeypatch: pytest.MonkeyPatch) -> None:
    threads: list[int] = []

    class ThreadRecordingTask:
        def apply_async(self, args, retry):  # noqa: ANN001, ARG002
            threads.append(threading.get_ident())

    monkeypatch.setattr(notifications, "send_telegram_message", ThreadRecordingTask())

    async def scenario() -> int:
        await TelegramNotifier(enabled=True, admin_chat_id="-100").notify_status_changed(INFO, 555)
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())

    assert len(threads) == 2
    assert loop_thread not in threads
