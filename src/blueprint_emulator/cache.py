"""In-memory cache with per-entry TTL and a background sweeper."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Generic, NamedTuple, Optional, TypeVar
from urllib.parse import quote

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class TTLCache(Generic[T]):
    """Thread-safe key/value store where every `set` carries its own TTL.

    Expired entries disappear two ways: lazily, on the `get` that finds them,
    and in bulk through `cleanup()`, which the optional sweeper thread calls on
    an interval.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._sweeper: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @staticmethod
    def generate_key(prefix: str, *params: Any) -> str:
        """Builds `prefix:p1:p2...`; separators inside values are escaped so keys never collide."""
        parts = [quote(str(prefix), safe="")]
        parts.extend(quote(str(p), safe="") for p in params)
        return ":".join(parts)

    def set(self, key: str, value: T, ttl_seconds: float) -> None:
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return default
            return entry.value

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def cleanup(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed %d expired entr(ies)", len(expired))
        return len(expired)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            now = self._clock()
            total = len(self._entries)
            expired = sum(1 for entry in self._entries.values() if entry.expires_at <= now)
        return {
            "total_entries": total,
            "expired_entries": expired,
            "valid_entries": total - expired,
        }

    # Sweeper lifecycle: start once, stop once; a stopped cache stays stopped.

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start_sweeper(self, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        with self._lock:
            if self._stop_event.is_set():
                raise RuntimeError("Cache sweeper was stopped and cannot be restarted")
            if self._sweeper is not None:
                return
            self._sweeper = threading.Thread(
                target=self._sweep_loop,
                args=(interval_seconds,),
                name="ttl-cache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def stop_sweeper(self) -> None:
        with self._lock:
            if self._stop_event.is_set():
                return
            self._stop_event.set()
            sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join()

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._stop_event.wait(interval_seconds):
            self.cleanup()
