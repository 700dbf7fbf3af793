"""Тесты Token Bucket и хранилища состояния с подменными часами."""

from __future__ import annotations

import pytest

from kabobfood.core.rate_limiter import RateLimiter
from kabobfood.core.state_store import InMemoryStateStore


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_bucket_allows_burst_then_refills() -> None:
    clock = FakeClock()
    limiter = RateLimiter(capacity=3, refill_rate=1.0, clock=clock)

    assert [limiter.allow("ip") for _ in range(4)] == [True, True, True, False]

    clock.advance(1.0)
    assert limiter.allow("ip") is True
    assert limiter.allow("ip") is False


def test_keys_have_independent_buckets() -> None:
    limiter = RateLimiter(capacity=1, refill_rate=0.1, clock=FakeClock())

    assert limiter.allow("a") is True
    assert limiter.allow("a") is False
    assert limiter.allow("b") is True


def test_per_window_limit() -> None:
    clock = FakeClock()
    limiter = RateLimiter.per_window(60, 60.0, clock=clock)

    assert all(limiter.allow("ip") for _ in range(60))
    assert limiter.allow("ip") is False
    clock.advance(60.0)
    assert all(limiter.allow("ip") for _ in range(60))


def test_idle_buckets_expire_from_store() -> None:
    clock = FakeClock()
    store = InMemoryStateStore(clock=clock)
    limiter = RateLimiter(capacity=2, refill_rate=1.0, store=store, clock=clock)

    limiter.allow("ip")
    assert len(store) == 1
    clock.advance(2.0)
    assert store.get("ip") is None
    assert len(store) == 0


@pytest.mark.parametrize(("capacity", "refill_rate"), [(0, 1.0), (1, 0.0), (-1, 1.0)])
def test_invalid_limiter_settings(capacity: int, refill_rate: float) -> None:
    with pytest.raises(ValueError):
        RateLimiter(capacity=capacity, refill_rate=refill_rate)


def test_state_store_ttl() -> None:
    clock = FakeClock()
    store = InMemoryStateStore(clock=clock)

    store.set("session", {"stage": 1}, ttl=10)
    store.set("forever", "value")
    clock.advance(9.9)
    assert store.get("session") == {"stage": 1}
    clock.advance(0.1)
    assert store.get("session") is None
    assert store.get("forever") == "value"

    store.delete("forever")
    store.delete("missing")
    assert store.get("forever") is None

    with pytest.raises(ValueError):
        store.set("bad", 1, ttl=0)


def test_state_store_sweeps_expired_keys_on_write() -> None:
    clock = FakeClock()
    store = InMemoryStateStore(clock=clock, sweep_every=3)

    store.set("a", 1, ttl=5)
    store.set("b", 2, ttl=5)
    store.set("keep", 3)
    assert len(store) == 3

    clock.advance(5.0)
    store.set("c", 4, ttl=5)
    store.set("d", 5, ttl=5)
    assert len(store) == 5
    store.set("e", 6, ttl=5)

    assert len(store) == 4
    assert store.get("keep") == 3


def test_state_store_rejects_non_positive_sweep_interval() -> None:
    with pytest.raises(ValueError):
        InMemoryStateStore(sweep_every=0)
