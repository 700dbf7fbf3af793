"""Сценарий регистрации в боте без привязки к Telegram SDK.

Этапы: `NEED_CONTACT -> NEED_NAME -> NEED_LOCATION -> READY`. `/start`
и неподдерживаемые сообщения возвращают пользователя в начало.

Сессии лежат во внешнем `StateStore` с TTL. In-memory хранилище теряет
незавершённые регистрации при перезапуске бота; для короткого онбординга
это допустимо.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from kabobfood.core.state_store import StateStore

PROMPT_CONTACT = "Привет! Нажмите кнопку ниже, чтобы поделиться номером телефона."
ASK_NAME = "Спасибо! Теперь напишите, как к вам обращаться?"
PROMPT_LOCATION = "Спасибо! Осталось отправить локацию, чтобы мы знали, куда доставлять."
BAD_CONTACT = "Не удалось прочитать номер телефона. Попробуйте снова отправить контакт."
BAD_PHONE = (
    "Пожалуйста, отправьте номер телефона (можно вручную) или воспользуйтесь кнопкой."
)
EMPTY_NAME = "Пожалуйста, введите имя или напишите /start, чтобы начать заново."
SEND_START = "Отправьте /start, чтобы начать регистрацию."
LOCATION_TOO_EARLY = (
    "Сначала отправьте контакт и имя. Нажмите /start, чтобы начать заново."
)
UNKNOWN_COMMAND = "Команда не поддерживается. Отправьте /start, чтобы начать регистрацию."
UNSUPPORTED_MESSAGE = (
    "Пока не понимаю это сообщение. Нажмите /start, чтобы начать заново."
)
LINK_FALLBACK = "Если кнопка не появилась, воспользуйтесь ссылкой: {link}"
DONE = "Отлично! Нажмите кнопку ниже, чтобы открыть мини-апп."
REGISTRATION_FAILED = "Не удалось завершить регистрацию: {error}"


class RegistrationStage(str, Enum):
    NEED_CONTACT = "need_contact"
    NEED_NAME = "need_name"
    NEED_LOCATION = "need_location"
    READY = "ready"


class Keyboard(str, Enum):
    """Какую клавиатуру приложить к ответу."""

    NONE = "none"
    REQUEST_CONTACT = "request_contact"
    REQUEST_LOCATION = "request_location"
    REMOVE = "remove"
    MINI_APP = "mini_app"


@dataclass
class RegistrationSession:
    stage: RegistrationStage = RegistrationStage.NEED_CONTACT
    phone: str = ""
    first_name: str = ""
    last_name: str = ""
    custom_name: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @property
    def display_name(self) -> str:
        return self.custom_name or self.first_name


@dataclass(frozen=True)
class Reply:
    text: str
    keyboard: Keyboard = Keyboard.NONE
    link: str | None = None


@dataclass(frozen=True)
class Registration:
    """Данные для `POST /bot/register`."""

    telegram_id: int
    phone: str
    first_name: str
    last_name: str
    latitude: float
    longitude: float

    def to_payload(self) -> dict:
        return {
            "telegram_id": self.telegram_id,
            "phone": self.phone,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "location": {"latitude": self.latitude, "longitude": self.longitude},
        }


@dataclass
class Step:
    """Результат обработки сообщения: ответы и, возможно, регистрация."""

    replies: list[Reply] = field(default_factory=list)
    registration: Registration | None = None


def normalize_phone(raw: str) -> str:
    """Оставить только цифры и ведущий `+`.

    Returns
    -------
    str
        Нормализованный номер или пустая строка, если цифр нет.

    Examples
    --------
    >>> normalize_phone(" +7 (999) 123-45-67 ")
    '+79991234567'
    """

    raw = raw.strip()
    chars: list[str] = []
    for index, char in enumerate(raw):
        if char == "+" and index == 0:
            chars.append(char)
        elif char.isdigit():
            chars.append(char)
    phone = "".join(chars)
    return "" if phone in ("", "+") else phone


def build_mini_app_link(mini_app_url: str, token: str) -> str:
    separator = "&" if "?" in mini_app_url else "?"
    return f"{mini_app_url}{separator}token={token}"


class RegistrationFlow:
    """Обработка событий бота поверх хранилища сессий.

    Parameters
    ----------
    store : StateStore
        Хранилище сессий (ключ - Telegram id).
    session_ttl : float
        Время жизни незавершённой сессии в секундах.
    mini_app_url : str
        Адрес Mini App, к которому добавляется `token`.
    """

    def __init__(self, store: StateStore, session_ttl: float, mini_app_url: str) -> None:
        self.store = store
        self.session_ttl = session_ttl
        self.mini_app_url = mini_app_url

    @staticmethod
    def _key(user_id: int) -> str:
        return f"bot:session:{user_id}"

    def get_session(self, user_id: int) -> RegistrationSession:
        session = self.store.get(self._key(user_id))
        if session is None:
            session = RegistrationSession()
            self._save(user_id, session)
        return session

    def _save(self, user_id: int, session: RegistrationSession) -> None:
        self.store.set(self._key(user_id), session, ttl=self.session_ttl)

    def reset(self, user_id: int) -> None:
        self._save(user_id, RegistrationSession())

    def on_start(self, user_id: int) -> Step:
        self.reset(user_id)
        return Step([Reply(PROMPT_CONTACT, Keyboard.REQUEST_CONTACT)])

    def on_command(self, user_id: int, command: str) -> Step:  # noqa: ARG002
        """Любая команда кроме /start: подсказка без сброса сессии."""

        return Step([Reply(UNKNOWN_COMMAND)])

    def on_unsupported(self, user_id: int) -> Step:
        self.reset(user_id)
        return Step([Reply(UNSUPPORTED_MESSAGE)])

    def _ask_name(self, user_id: int, session: RegistrationSession) -> Step:
        session.stage = RegistrationStage.NEED_NAME
        self._save(user_id, session)
        return Step([Reply(ASK_NAME)])

    def on_contact(
        self,
        user_id: int,
        phone: str,
        first_name: str = "",
        last_name: str = "",
    ) -> Step:
        session = self.get_session(user_id)
        session.phone = phone.strip()
        session.first_name = first_name.strip()
        session.last_name = last_name.strip()
        if not session.phone:
            self._save(user_id, session)
            return Step([Reply(BAD_CONTACT)])
        return self._ask_name(user_id, session)

    def on_text(
        self,
        user_id: int,
        text: str,
        from_first_name: str = "",
        from_last_name: str = "",
    ) -> Step:
        session = self.get_session(user_id)

        if session.stage is RegistrationStage.NEED_CONTACT:
            phone = normalize_phone(text)
            if not phone:
                return Step([Reply(BAD_PHONE)])
            session.phone = phone
            session.first_name = session.first_name or from_first_name.strip()
            session.last_name = session.last_name or from_last_name.strip()
            return self._ask_name(user_id, session)

        if session.stage is RegistrationStage.NEED_NAME:
            name = text.strip()
            if not name:
                return Step([Reply(EMPTY_NAME)])
            session.custom_name = name
            session.stage = RegistrationStage.NEED_LOCATION
            self._save(user_id, session)
            return Step([Reply(PROMPT_LOCATION, Keyboard.REQUEST_LOCATION)])

        return Step([Reply(SEND_START)])

    def on_location(self, user_id: int, latitude: float, longitude: float) -> Step:
        """Последний шаг: вернуть данные для регистрации на бэкенде."""

        session = self.get_session(user_id)
        if session.stage is not RegistrationStage.NEED_LOCATION:
            return Step([Reply(LOCATION_TOO_EARLY)])

        session.latitude = latitude
        session.longitude = longitude
        session.stage = RegistrationStage.READY
        self._save(user_id, session)

        if not session.display_name:
            return Step([Reply(REGISTRATION_FAILED.format(error="не указано имя"))])
        if not session.phone:
            return Step([Reply(REGISTRATION_FAILED.format(error="не указан телефон"))])

        return Step(
            registration=Registration(
                telegram_id=user_id,
                phone=session.phone,
                first_name=session.display_name,
                last_name=session.last_name,
                latitude=latitude,
                longitude=longitude,
            ),
        )

    def on_registered(self, user_id: int, token: str) -> Step:  # noqa: ARG002
        link = build_mini_app_link(self.mini_app_url, token)
        return Step(
            [
                Reply(LINK_FALLBACK.format(link=link), Keyboard.MINI_APP, link=link),
                Reply(DONE, Keyboard.REMOVE),
            ],
        )

    def on_registration_failed(self, user_id: int, error: str) -> Step:  # noqa: ARG002
        return Step([Reply(REGISTRATION_FAILED.format(error=error))])
