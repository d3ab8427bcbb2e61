# backend/utils/ttl_store.py
"""Key/value store with per-key expiry, used for OTP codes and rate limits.

Callers depend on :class:`TTLStore` only, so a shared cache (Redis or
similar) can replace :class:`InMemoryTTLStore` without touching them.
The in-memory store lives inside one process: with several workers each
one keeps its own counters and codes.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLStore:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def incr(self, key: str, ttl_seconds: float) -> int:
        """Increment a counter, starting a new TTL window when the key is absent."""
        raise NotImplementedError

    def ttl(self, key: str) -> Optional[float]:
        raise NotImplementedError

    def sweep(self) -> int:
        raise NotImplementedError


class InMemoryTTLStore(TTLStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 256):
        self._data: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0

    def _live(self, key: str, now: float) -> Optional[Tuple[Any, float]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[1] <= now:
            del self._data[key]
            return None
        return entry

    def _maybe_sweep(self, now: float) -> None:
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, (_, exp) in self._data.items() if exp <= now]
        for k in expired:
            del self._data[k]
        return len(expired)

    def get(self, key):
        with self._lock:
            entry = self._live(key, self._clock())
            return entry[0] if entry else None

    def set(self, key, value, ttl_seconds):
        with self._lock:
            now = self._clock()
            self._data[key] = (value, now + ttl_seconds)
            self._maybe_sweep(now)

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def incr(self, key, ttl_seconds):
        with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            if entry is None:
                self._data[key] = (1, now + ttl_seconds)
                self._maybe_sweep(now)
                return 1
            count = entry[0] + 1
            self._data[key] = (count, entry[1])
            return count

    def ttl(self, key):
        with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            return entry[1] - now if entry else None

    def sweep(self):
        with self._lock:
            return self._sweep_locked(self._clock())

    def __len__(self):
        return len(self._data)


_default_store: Optional[TTLStore] = None


def get_ttl_store() -> TTLStore:
    global _default_store
    if _default_store is None:
        _default_store = InMemoryTTLStore()
    return _default_store
