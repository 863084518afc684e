"""In-process TTL cache for assembled report payloads.

Usage:
    from app.utils.response_cache import response_cache, report_cache_key

    key = report_cache_key("inventory-report", months, merge=True, policy="forward")
    cached = response_cache.get(key)
    if cached is not None:
        return cached
    result = await service.generate(...)
    response_cache.set(key, result, ttl=settings.report_cache_ttl_seconds)
"""
import threading
import time
from typing import Any


def report_cache_key(endpoint: str, months: int, merge: bool = False, policy: str = "forward") -> str:
    """Cache key for one report variant (endpoint, window, merge flag, reconstruction policy)"""
    return f"{endpoint}|{months}|{int(merge)}|{policy}"


class ResponseCache:
    """Thread-safe in-memory cache with TTL expiry and max-entry limit.

    Only successful payloads are stored; failures are always recomputed.
    """

    def __init__(self, max_entries: int = 32):
        self._store: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._max_entries = max_entries

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if time.time() > expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: int = 300) -> None:
        if ttl <= 0:
            return
        with self._lock:
            if len(self._store) >= self._max_entries:
                now = time.time()
                for k in [k for k, (exp, _) in self._store.items() if now > exp]:
                    del self._store[k]
            # Still full: drop whichever entry expires first
            if len(self._store) >= self._max_entries:
                soonest = min(self._store, key=lambda k: self._store[k][0])
                del self._store[soonest]
            self._store[key] = (time.time() + ttl, value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


response_cache = ResponseCache()
