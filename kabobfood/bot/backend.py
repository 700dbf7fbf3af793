"""HTTP клиент бота к API (`POST /bot/register`)."""

from __future__ import annotations

import asyncio

import requests

from kabobfood.bot.flow import Registration


class BackendError(Exception):
    """Регистрация на бэкенде не удалась (текст показывается пользователю)."""


class BackendClient:
    """Синхронный клиент на `requests`; из бота вызывается через поток.

    Parameters
    ----------
    base_url : str
        Адрес API (например, `http://api:8080`).
    bot_secret : str | None
        Значение заголовка `X-Bot-Secret`, если API его требует.
    timeout : float, default=10.0
        Таймаут запроса в секундах.
    """

    def __init__(
        self,
        base_url: str,
        bot_secret: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/") or "http://localhost:8080"
        self.bot_secret = bot_secret
        self.timeout = timeout
        self.session = session or requests.Session()

    def register(self, registration: Registration) -> str:
        """Зарегистрировать пользователя и вернуть JWT.

        Raises
        ------
        BackendError
            Сетевая ошибка, ответ не 2xx или пустой токен.
        """

        headers = {"X-Bot-Secret": self.bot_secret} if self.bot_secret else {}
        try:
            response = self.session.post(
                f"{self.base_url}/bot/register",
                json=registration.to_payload(),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendError(str(exc)) from exc

        if response.status_code >= 300:
            raise BackendError(f"backend ответил {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError("некорректный ответ backend") from exc
        token = data.get("token", "") if isinstance(data, dict) else ""
        if not token:
            raise BackendError("получен пустой токен")
        return token

    async def register_async(self, registration: Registration) -> str:
        return await asyncio.to_thread(self.register, registration)
