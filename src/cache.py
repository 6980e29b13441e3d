import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from src.config import CACHE_SWEEP_INTERVAL_SECONDS
from src.logger import get_logger

logger = get_logger("cache")


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A serialized response payload and the moment it was stored."""

    value: bytes
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl


class ResponseCache:
    """Thread-safe in-memory store of serialized responses with per-entry expiry.

    Reads check expiry eagerly, so an expired entry is never returned even if
    the sweeper has not removed it yet. The sweeper thread reclaims memory on a
    fixed interval independent of request traffic: an entry is dropped at most
    `sweep_interval` seconds after it expires.
    """

    def __init__(
        self,
        ttl_seconds: float,
        sweep_interval: float = CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive; disable the cache by not creating one")
        if sweep_interval <= 0:
            raise ValueError("sweep_interval must be positive")
        self._ttl = float(ttl_seconds)
        self._sweep_interval = float(sweep_interval)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    def get(self, key: str) -> tuple[bytes | None, bool]:
        """Return `(value, True)` for a live entry, `(None, False)` otherwise."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None, False
        return entry.value, True

    def set(self, key: str, value: bytes) -> None:
        """Store `value` under `key` for one TTL, replacing any previous entry."""
        entry = CacheEntry(value=value, inserted_at=self._clock(), ttl=self._ttl)
        with self._lock:
            self._entries[key] = entry

    def sweep(self) -> int:
        """Remove expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def start(self) -> None:
        """Start the background sweeper thread; calling it twice is a no-op."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(target=self._run_sweeper, name="response-cache-sweeper", daemon=True)
        self._sweeper.start()
        logger.debug(f"Started cache sweeper ttl={self._ttl}s interval={self._sweep_interval}s")

    def stop(self) -> None:
        """Stop the sweeper thread and wait for it to exit."""
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join()
            self._sweeper = None
            logger.debug("Stopped cache sweeper")

    def _run_sweeper(self) -> None:
        while not self._stop_event.wait(self._sweep_interval):
            removed = self.sweep()
            if removed:
                logger.debug(f"Swept expired cache entries removed={removed} remaining={len(self)}")
