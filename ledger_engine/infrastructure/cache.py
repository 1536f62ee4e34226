"""In-memory TTL cache for expensive aggregate computations"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Generic, Iterator, Mapping, TypeVar
from urllib.parse import quote

from ledger_engine.domain.exceptions import ValidationError
from ledger_engine.infrastructure.observability.metrics import record_cache_lookup, cache_compute_histogram

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with its absolute expiry on the cache clock"""

    value: T
    expires_at: float


def _render_scalar(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(getattr(value, "value", value))


def _render_param(value: Any) -> str:
    # Elements are escaped before joining, so a literal "," inside one
    # element cannot be confused with the separator
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(sorted(quote(_render_scalar(v), safe="") for v in value))
    return quote(_render_scalar(value), safe="")


def build_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Canonical cache key: endpoint plus sorted key=value pairs.

    Parameter order never affects the key. None values are dropped and
    sequence values are sorted and comma-joined, so
    {"status": ["paid", "unpaid"]} and {"status": ["unpaid", "paid"]} collide.
    Keys and values are percent-encoded, so "&", "=" and "," inside a value
    never read as separators.
    """
    pairs = sorted(
        (quote(str(k), safe=""), _render_param(v))
        for k, v in (params or {}).items()
        if v is not None
    )
    if not pairs:
        return endpoint
    return endpoint + "?" + "&".join(f"{k}={v}" for k, v in pairs)


@dataclass
class _KeyLock:
    """Per-key miss lock and the number of threads holding or awaiting it"""

    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


class TTLCache:
    """
    Get-or-compute cache with per-key expiry.

    Thread-safety:
    - a short-held lock guards the entry map; compute never runs under it
    - misses take a per-key lock, so concurrent misses for one key run
      compute once while other keys proceed independently
    - a per-key lock lives only while a miss for that key is in flight
    - a failing compute stores nothing and its exception propagates as-is
    """

    def __init__(self, name: str = "default", clock: Callable[[], float] = time.monotonic):
        self.name = name
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, _KeyLock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return entry

    @contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        """Hold the miss lock for key; the lock is dropped once nobody holds or awaits it"""
        with self._lock:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = self._key_locks[key] = _KeyLock()
            slot.waiters += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._lock:
                slot.waiters -= 1
                if slot.waiters == 0:
                    del self._key_locks[key]

    def get_or_compute(self, key: str, ttl_seconds: float, compute: Callable[[], T]) -> T:
        """Return the unexpired value for key, computing and storing it on a miss"""
        if ttl_seconds <= 0:
            raise ValidationError("ttl_seconds must be greater than zero", field="ttl_seconds")

        entry = self._lookup(key)
        if entry is not None:
            record_cache_lookup(self.name, hit=True)
            return entry.value

        with self._key_lock(key):
            # Another thread may have filled the entry while we waited
            entry = self._lookup(key)
            if entry is not None:
                record_cache_lookup(self.name, hit=True)
                return entry.value

            record_cache_lookup(self.name, hit=False)
            logger.debug("Cache miss", extra={"cache": self.name, "key": key})
            with cache_compute_histogram.labels(cache=self.name).time():
                value = compute()

            with self._lock:
                self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
            return value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cache cleared", extra={"cache": self.name, "entries": count})

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed"""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)
