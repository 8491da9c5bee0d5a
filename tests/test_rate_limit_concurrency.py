"""Concurrency tests for the in-memory limiter.

Threads are released together by a barrier so the same-key calls actually
race on the read-increment-write.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from getip.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def _race(limiter: InMemoryFixedWindowRateLimiter, keys: list[str], now: float) -> list[tuple[str, bool]]:
    barrier = threading.Barrier(len(keys))

    def call(key: str) -> tuple[str, bool]:
        barrier.wait()
        return key, limiter.check_and_record(key, now=now).allowed

    with ThreadPoolExecutor(max_workers=len(keys)) as pool:
        return list(pool.map(call, keys))


def test_seventy_concurrent_calls_admit_exactly_sixty() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=60, window_seconds=60)

    results = _race(limiter, ["5.6.7.8"] * 70, now=0)

    allowed = [ok for _, ok in results]
    assert allowed.count(True) == 60
    assert allowed.count(False) == 10


def test_concurrent_distinct_keys_are_independent() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=3, window_seconds=60)
    keys = [f"10.0.0.{i % 8}" for i in range(40)]

    results = _race(limiter, keys, now=0)

    per_key: dict[str, int] = {}
    for key, ok in results:
        if ok:
            per_key[key] = per_key.get(key, 0) + 1
    # 5 calls per key, 3 admitted each
    assert per_key == {f"10.0.0.{i}": 3 for i in range(8)}


def test_sweeps_racing_with_callers_never_double_admit() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=10, window_seconds=60)
    limiter.check_and_record("hot", now=0)
    limiter.check_and_record("stale", now=0)

    barrier = threading.Barrier(41)
    outcomes: list[bool] = []
    lock = threading.Lock()

    def caller() -> None:
        barrier.wait()
        ok = limiter.check_and_record("hot", now=121).allowed
        with lock:
            outcomes.append(ok)

    def sweeper() -> None:
        barrier.wait()
        for _ in range(50):
            limiter.sweep(now=121)

    threads = [threading.Thread(target=caller) for _ in range(40)]
    threads.append(threading.Thread(target=sweeper))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count(True) == 10
    assert outcomes.count(False) == 30
