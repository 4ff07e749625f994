import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.csrf.store import CsrfTokenRecord, CsrfTokenStore
from storefront.csrf.sweeper import run_sweeper, start_sweeper


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_issue_returns_64_hex_chars_and_distinct_tokens():
    store = CsrfTokenStore()
    t1, t2 = store.issue(), store.issue()
    assert len(t1) == 64
    int(t1, 16)
    assert t1 != t2
    assert len(store) == 2


def test_token_is_single_use():
    store = CsrfTokenStore()
    token = store.issue()
    assert store.validate(token) is True
    assert store.validate(token) is False
    assert token not in store


def test_unknown_and_empty_tokens_are_rejected_without_mutation():
    store = CsrfTokenStore()
    token = store.issue()
    assert store.validate("never-issued") is False
    assert store.validate("") is False
    assert store.validate(None) is False
    assert token in store


def test_expired_token_is_rejected_and_removed():
    clock = FakeClock()
    store = CsrfTokenStore(ttl_seconds=900, clock=clock)
    token = store.issue()
    clock.now += 901
    assert store.validate(token) is False
    assert token not in store


def test_token_still_valid_just_before_expiry():
    clock = FakeClock()
    store = CsrfTokenStore(ttl_seconds=900, clock=clock)
    token = store.issue()
    clock.now += 899
    assert store.validate(token) is True


def test_concurrent_validation_succeeds_exactly_once():
    store = CsrfTokenStore()
    token = store.issue()
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: store.validate(token), range(64)))
    assert results.count(True) == 1
    assert results.count(False) == 63


def test_sweep_removes_only_expired_tokens():
    clock = FakeClock()
    store = CsrfTokenStore(ttl_seconds=60, clock=clock)
    old = [store.issue() for _ in range(3)]
    clock.now += 30
    fresh = store.issue()
    clock.now += 31

    assert store.sweep() == 3
    assert all(t not in store for t in old)
    assert fresh in store
    assert store.validate(fresh) is True


def test_sweep_on_empty_store():
    assert CsrfTokenStore().sweep() == 0


async def test_run_sweeper_purges_periodically():
    clock = FakeClock()
    store = CsrfTokenStore(ttl_seconds=1, clock=clock)
    store.issue()
    clock.now += 2

    task = asyncio.create_task(run_sweeper(store, interval_seconds=0.01))
    for _ in range(50):
        await asyncio.sleep(0.01)
        if len(store) == 0:
            break
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(store) == 0


async def test_start_sweeper_disabled_with_zero_interval():
    assert start_sweeper(CsrfTokenStore(), 0) is None


def test_record_marked_used_is_rejected_and_removed():
    clock = FakeClock()
    store = CsrfTokenStore(clock=clock)
    token = store.issue()
    store._records[token] = CsrfTokenRecord(expiry=clock.now + 60, used=True)
    assert store.validate(token) is False
    assert token not in store
