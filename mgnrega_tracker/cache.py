"""
Response Cache Module

Process-wide key -> payload store with a fixed time-to-live. Entries leave
the cache only when read after expiry or on an explicit clear; there is no
capacity bound and no background sweep, so a very long-lived process issuing
many distinct queries grows without limit.
"""

# Standard library imports
import time
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

# Local imports
from .config import CACHE_TTL_SECONDS

# Logger setup
logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached payload and the clock reading at which it was stored."""

    payload: Any
    stored_at: float


class ResponseCache:
    """
    In-memory TTL cache for API responses.

    The clock is injectable so expiry can be tested without sleeping. All
    access goes through a lock because batch fetches run on worker threads.

    Attributes:
        ttl (float): Time-to-live in seconds
        clock (Callable[[], float]): Monotonic time source

    Example:
        >>> cache = ResponseCache(ttl=1800)
        >>> cache.put('mgnrega_all_all_all_1000', response)
        >>> cache.get('mgnrega_all_all_all_1000') is response
        True
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        if ttl < 0:
            raise ValueError("Cache TTL must be non-negative")

        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """
        Return the payload for key if it has not expired.

        An expired entry is removed and None is returned; reading it again
        also returns None.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self.clock() - entry.stored_at < self.ttl:
                logger.debug(f"Cache hit for key: {key}")
                return entry.payload

            del self._entries[key]
            logger.debug(f"Cache expired for key: {key}")
            return None

    def peek(self, key: str) -> Optional[Any]:
        """Return the payload for key regardless of age, without evicting it."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.payload if entry is not None else None

    def put(self, key: str, payload: Any) -> None:
        """Store payload under key, replacing any entry and resetting its age."""
        with self._lock:
            self._entries[key] = CacheEntry(payload=payload, stored_at=self.clock())
        logger.debug(f"Data cached for key: {key}")

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {size} cache entries")

    def stats(self) -> Dict[str, Any]:
        """Return {'count': number of entries, 'keys': list of keys}."""
        with self._lock:
            keys: List[str] = list(self._entries.keys())
        return {"count": len(keys), "keys": keys}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache = ResponseCache()


def get_default_cache() -> ResponseCache:
    """Return the cache shared by every client that was not given its own."""
    return _default_cache
