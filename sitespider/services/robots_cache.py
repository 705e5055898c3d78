import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional
from urllib.robotparser import RobotFileParser


@dataclass(frozen=True)
class RobotsCacheEntry:
    parser: Optional[RobotFileParser]
    stored_at: float


class RobotsCache:
    """
    Thread-safe LRU cache of parsed robots.txt files keyed by origin
    (`scheme://host[:port]`).

    A cached entry with `parser=None` records that robots.txt could not be
    fetched or parsed, so the origin is not retried until the entry expires.
    """

    def __init__(self, *, max_size: int = 2048, ttl_seconds: int = 3600):
        self._max_size = int(max_size) if max_size is not None else 2048
        if self._max_size <= 0:
            self._max_size = 1

        self._ttl_seconds = int(ttl_seconds) if ttl_seconds is not None else 3600
        if self._ttl_seconds <= 0:
            # non-positive TTL disables caching
            self._ttl_seconds = 0

        self._lock = threading.Lock()
        self._cache: "OrderedDict[str, RobotsCacheEntry]" = OrderedDict()

    def _is_expired(self, entry: RobotsCacheEntry) -> bool:
        if self._ttl_seconds == 0:
            return True
        return (time.time() - entry.stored_at) > self._ttl_seconds

    def get(self, origin: str) -> Optional[RobotsCacheEntry]:
        """Cached entry for `origin`, or None when missing or expired."""
        with self._lock:
            entry = self._cache.get(origin)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._cache[origin]
                return None
            self._cache.move_to_end(origin)
            return entry

    def set(self, origin: str, parser: Optional[RobotFileParser]) -> None:
        with self._lock:
            self._cache[origin] = RobotsCacheEntry(parser=parser, stored_at=time.time())
            self._cache.move_to_end(origin)
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
