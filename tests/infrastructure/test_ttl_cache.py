from __future__ import annotations

import time

import pytest

from uavfleet.infrastructure.ttl_cache import TTLCache, memoize


def test_ttl_cache_miss_then_hit() -> None:
    cache: TTLCache[str, int] = TTLCache(ttl_seconds=1.0)
    assert cache.get("a") is None
    cache.set("a", 42)
    assert cache.get("a") == 42
    assert len(cache) == 1


def test_ttl_cache_expiry(monkeypatch: pytest.MonkeyPatch) -> None:
    cache: TTLCache[str, str] = TTLCache(ttl_seconds=0.5)
    cache.set("k", "v")

    real_mono = time.monotonic

    def later() -> float:
        return real_mono() + 1.0

    # Force expiry
    monkeypatch.setattr("time.monotonic", later)
    assert len(cache) == 0
    assert cache.get("k") is None


def test_ttl_cache_without_ttl_never_expires(monkeypatch: pytest.MonkeyPatch) -> None:
    cache: TTLCache[str, str] = TTLCache(ttl_seconds=None)
    cache.set("k", "v")
    cache.set("short", "x", ttl_seconds=0.1)

    real_mono = time.monotonic
    monkeypatch.setattr("time.monotonic", lambda: real_mono() + 10_000.0)

    assert cache.get("k") == "v"
    assert cache.get("short") is None


def test_ttl_cache_invalidate_and_clear() -> None:
    cache: TTLCache[str, int] = TTLCache(ttl_seconds=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2
    cache.clear()
    assert len(cache) == 0


def test_memoize_caches_results_including_none() -> None:
    calls: list[int] = []

    @memoize(ttl_seconds=60)
    def lookup(x: int) -> int | None:
        calls.append(x)
        return None if x < 0 else x * 2

    assert lookup(2) == 4
    assert lookup(2) == 4
    assert lookup(-1) is None
    assert lookup(-1) is None
    assert calls == [2, -1]

    lookup.cache_clear()  # type: ignore[attr-defined]
    assert lookup(2) == 4
    assert calls == [2, -1, 2]


def test_memoize_custom_key() -> None:
    calls: list[str] = []

    @memoize(key=lambda name, **_: name.lower())
    def greet(name: str, punctuation: str = "!") -> str:
        calls.append(name)
        return f"hi {name}{punctuation}"

    assert greet("Ann") == "hi Ann!"
    assert greet("ANN", punctuation="?") == "hi Ann!"
    assert calls == ["Ann"]
