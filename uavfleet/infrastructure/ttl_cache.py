from __future__ import annotations

import functools
import json
import time
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")
R = TypeVar("R")

_NO_EXPIRY = float("inf")


class TTLCache(Generic[K, V]):
    """Simple in-memory TTL cache.

    - Stores values with an absolute expiry computed from ``ttl_seconds``.
    - ``ttl_seconds=None`` keeps entries until they are invalidated.
    - Uses ``time.monotonic()`` for steady time measurement.
    """

    def __init__(self, ttl_seconds: Optional[float]) -> None:
        self._ttl = None if ttl_seconds is None else float(ttl_seconds)
        self._store: Dict[K, Tuple[float, V]] = {}

    def get(self, key: K) -> Optional[V]:
        now = time.monotonic()
        item = self._store.get(key)
        if item is None:
            return None
        expiry, value = item
        if now >= expiry:
            # Expired
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: K, value: V, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._ttl if ttl_seconds is None else float(ttl_seconds)
        expiry = _NO_EXPIRY if ttl is None else time.monotonic() + ttl
        self._store[key] = (expiry, value)

    def invalidate(self, key: K) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        now = time.monotonic()
        return sum(1 for expiry, _ in self._store.values() if now < expiry)


def _default_key(*args: Any, **kwargs: Any) -> str:
    return json.dumps([args, kwargs], sort_keys=True, default=str)


def memoize(
    ttl_seconds: Optional[float] = None,
    key: Optional[Callable[..., Any]] = None,
) -> Callable[[Callable[..., R]], Callable[..., R]]:
    """Cache a function's results keyed by its arguments.

    The key defaults to a JSON dump of the call arguments; pass ``key`` to
    derive it differently. ``None`` results are cached as well.
    """

    make_key = key or _default_key

    def decorator(func: Callable[..., R]) -> Callable[..., R]:
        cache: TTLCache[Any, Tuple[R]] = TTLCache(ttl_seconds)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> R:
            k = make_key(*args, **kwargs)
            hit = cache.get(k)
            if hit is not None:
                return hit[0]
            result = func(*args, **kwargs)
            cache.set(k, (result,))
            return result

        wrapper.cache_clear = cache.clear  # type: ignore[attr-defined]
        return wrapper

    return decorator
