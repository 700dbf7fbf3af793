"""Telegram-бот регистрации (aiogram 3, long polling).

Запуск: `python -m kabobfood.bot.main`.
"""

from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher, F, Router
from aiogram.filters import CommandStart
from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    Message,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
    WebAppInfo,
)
from loguru import logger

from kabobfood.bot.backend import BackendClient, BackendError
from kabobfood.bot.flow import Keyboard, RegistrationFlow, Reply, Step
from kabobfood.core.config import get_settings
from kabobfood.core.logging import setup_logging
from kabobfood.core.state_store import InMemoryStateStore


def build_markup(reply: Reply):
    """Перевести описание клавиатуры в разметку aiogram."""

    if reply.keyboard is Keyboard.REQUEST_CONTACT:
        return ReplyKeyboardMarkup(
            keyboard=[[KeyboardButton(text="Отправить телефон", request_contact=True)]],
            resize_keyboard=True,
            one_time_keyboard=True,
        )
    if reply.keyboard is Keyboard.REQUEST_LOCATION:
        return ReplyKeyboardMarkup(
            keyboard=[
                [KeyboardButton(text="Поделиться геолокацией", request_location=True)],
            ],
            resize_keyboard=True,
            one_time_keyboard=True,
        )
    if reply.keyboard is Keyboard.REMOVE:
        return ReplyKeyboardRemove()
    if reply.keyboard is Keyboard.MINI_APP and reply.link:
        return InlineKeyboardMarkup(
            inline_keyboard=[
                [InlineKeyboardButton(text="Открыть мини-апп", web_app=WebAppInfo(url=reply.link))],
                [InlineKeyboardButton(text="Открыть в браузере", url=reply.link)],
            ],
        )
    return None


async def send_step(message: Message, step: Step) -> None:
    for reply in step.replies:
        await message.answer(reply.text, reply_markup=build_markup(reply))


def build_router(flow: RegistrationFlow, backend: BackendClient) -> Router:
    """Собрать роутер с обработчиками сценария регистрации."""

    router = Router()

    @router.message(CommandStart())
    async def on_start(message: Message) -> None:
        await send_step(message, flow.on_start(message.from_user.id))

    @router.message(F.text.startswith("/"))
    async def on_command(message: Message) -> None:
        await send_step(message, flow.on_command(message.from_user.id, message.text))

    @router.message(F.contact)
    async def on_contact(message: Message) -> None:
        contact = message.contact
        step = flow.on_contact(
            message.from_user.id,
            contact.phone_number or "",
            contact.first_name or "",
            contact.last_name or "",
        )
        await send_step(message, step)

    @router.message(F.location)
    async def on_location(message: Message) -> None:
        user_id = message.from_user.id
        step = flow.on_location(
            user_id,
            message.location.latitude,
            message.location.longitude,
        )
        if step.registration is None:
            await send_step(message, step)
            return

        try:
            token = await backend.register_async(step.registration)
        except BackendError as exc:
            logger.warning("Bot registration failed user_id={id}: {err}", id=user_id, err=str(exc))
            await send_step(message, flow.on_registration_failed(user_id, str(exc)))
            return
        logger.info("Bot registration completed user_id={id}", id=user_id)
        await send_step(message, flow.on_registered(user_id, token))

    @router.message(F.text)
    async def on_text(message: Message) -> None:
        user = message.from_user
        step = flow.on_text(user.id, message.text, user.first_name or "", user.last_name or "")
        await send_step(message, step)

    @router.message()
    async def on_other(message: Message) -> None:
        if message.from_user is None:
            return
        await send_step(message, flow.on_unsupported(message.from_user.id))

    return router


async def run_bot() -> None:
    settings = get_settings()
    setup_logging("DEBUG" if settings.bot_debug else settings.log_level)

    token = settings.bot_token_value
    if token is None:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is required to run the bot")

    secret = settings.bot_register_secret
    flow = RegistrationFlow(
        InMemoryStateStore(),
        session_ttl=settings.bot_session_ttl_seconds,
        mini_app_url=settings.mini_app_url.strip() or "https://kabob-food-mini.vercel.app",
    )
    backend = BackendClient(
        settings.bot_backend_url,
        bot_secret=secret.get_secret_value() if secret is not None else None,
    )

    bot = Bot(token=token)
    dispatcher = Dispatcher()
    dispatcher.include_router(build_router(flow, backend))
    logger.info("Bot polling started backend={url}", url=backend.base_url)
    try:
        await dispatcher.start_polling(bot)
    finally:
        await bot.session.close()


def main() -> None:
    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
