"""Rate limiting по алгоритму Token Bucket.

Notes
-----
Ведра хранятся во внешнем `StateStore`, переданном при создании. По
умолчанию это in-memory хранилище: лимит действует в рамках одного
процесса (worker).
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from kabobfood.core.state_store import InMemoryStateStore, StateStore


@dataclass(frozen=True)
class _Bucket:
    tokens: float
    last_refill_ts: float


class RateLimiter:
    """Ограничитель частоты запросов по алгоритму Token Bucket.

    Parameters
    ----------
    capacity : int
        Максимальное количество токенов в ведре.
    refill_rate : float
        Скорость пополнения токенов в секунду. Должна быть положительной.
    store : StateStore | None
        Хранилище ведер. Если не задано, создаётся in-memory.
    clock : Callable[[], float], default=time.monotonic
        Источник времени для расчёта пополнения.
    """

    def __init__(
        self,
        capacity: int,
        refill_rate: float,
        *,
        store: StateStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Инициализировать ограничитель частоты.

        Raises
        ------
        ValueError
            Если capacity или refill_rate не являются положительными.
        """

        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")

        self.capacity = capacity
        self.refill_rate = refill_rate
        self._clock = clock
        self._store: StateStore = store if store is not None else InMemoryStateStore(clock)
        self._lock = threading.Lock()
        # Ведро полностью восстанавливается за это время, дальше его можно забыть.
        self._idle_ttl = capacity / refill_rate

    @classmethod
    def per_window(
        cls,
        limit: int,
        window_seconds: float,
        *,
        store: StateStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> RateLimiter:
        """Лимит вида «не больше `limit` запросов за `window_seconds`»."""

        return cls(limit, limit / window_seconds, store=store, clock=clock)

    def allow(self, key: str, cost: int = 1) -> bool:
        """Проверить, разрешён ли запрос.

        Parameters
        ----------
        key : str
            Ключ лимита (например, IP адрес).
        cost : int, default=1
            Стоимость запроса в токенах.

        Returns
        -------
        bool
            True, если запрос можно выполнить, иначе False.
        """

        if cost <= 0:
            raise ValueError("cost must be positive")

        now = self._clock()
        with self._lock:
            bucket = self._store.get(key)
            if bucket is None:
                bucket = _Bucket(tokens=float(self.capacity), last_refill_ts=now)

            elapsed = max(0.0, now - bucket.last_refill_ts)
            tokens = min(float(self.capacity), bucket.tokens + elapsed * self.refill_rate)

            allowed = tokens >= cost
            if allowed:
                tokens -= cost
            self._store.set(
                key,
                _Bucket(tokens=tokens, last_refill_ts=now),
                ttl=self._idle_ttl,
            )
            return allowed
