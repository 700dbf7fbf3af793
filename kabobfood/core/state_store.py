"""Хранилище состояния по ключу с TTL.

Используется rate limiter'ом (ведра токенов) и ботом (сессии регистрации).
Состояние живёт в явно переданном объекте, а не в глобальных переменных
модуля, поэтому в тестах легко подменить часы или само хранилище.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol


class StateStore(Protocol):
    """Интерфейс key -> value с опциональным временем жизни."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class InMemoryStateStore:
    """Потокобезопасное in-memory хранилище.

    Parameters
    ----------
    clock : Callable[[], float], default=time.monotonic
        Источник текущего времени в секундах.
    sweep_every : int, default=1000
        Через сколько записей `set` проходить по всему словарю и удалять
        просроченные ключи.

    Notes
    -----
    Просроченные записи удаляются при чтении и периодической чисткой при
    записи, так что ключи, которые больше не читают, не копятся. Состояние
    теряется при перезапуске процесса.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ) -> None:
        if sweep_every <= 0:
            raise ValueError("sweep_every must be positive")
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            now = self._clock()
            self._writes += 1
            if self._writes >= self._sweep_every:
                self._writes = 0
                self._sweep_expired(now)
            expires_at = None if ttl is None else now + ttl
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def _sweep_expired(self, now: float) -> None:
        # вызывается под self._lock
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.expires_at is not None and entry.expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
