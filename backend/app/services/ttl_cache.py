"""
In-memory TTL cache for threat level lookups

Caching strategy:
- Fixed TTL per entry (absolute expiry set at write time)
- Expiry is checked on every read; stale entries are never returned
- A periodic sweep reclaims entries that are written but never read again

State lives in process memory only and is lost on restart.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value with its absolute expiry"""
    value: V
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache(Generic[V]):
    """Thread-safe key/value store with per-entry expiry"""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[V]:
        """Get value if not expired; expired entries are evicted"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired on read: {key}")
                return None
            return entry.value

    def put(self, key: str, value: V) -> None:
        """Store value, replacing any existing entry"""
        now = self._clock()
        entry = CacheEntry(value=value, stored_at=now, expires_at=now + self._ttl)
        with self._lock:
            self._entries[key] = entry

    def evict(self, key: str) -> bool:
        """Remove a single entry; returns whether it existed"""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear_all(self) -> int:
        """Remove every entry; returns how many were removed"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cache cleared: {count} entries removed")
        return count

    def sweep(self) -> int:
        """Evict all expired entries regardless of reads"""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Cache sweep evicted {len(expired)} expired entries")
        return len(expired)

    def keys(self) -> List[str]:
        """Snapshot of stored keys (may include entries not yet swept)"""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())
