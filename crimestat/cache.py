"""CrimeStat — In-memory session store with sliding TTL"""

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

from crimestat.config import SESSION_MAX, SESSION_TTL

logger = logging.getLogger("crimestat.cache")

T = TypeVar("T")


class SessionStore(Generic[T]):
    """Keeps one view state per session id.

    Reads refresh the expiry, so only idle sessions age out. When full, the
    session closest to expiry is dropped.
    """

    def __init__(
        self, ttl: float = SESSION_TTL, max_size: int = SESSION_MAX,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, tuple[T, float]] = {}
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._last_evict = 0.0

    def _maybe_evict(self):
        """Evict expired sessions lazily (at most once per 60s)."""
        now = self._clock()
        if now - self._last_evict < 60:
            return
        self._last_evict = now
        self.evict_expired()

    def get(self, sid: str) -> Optional[T]:
        self._maybe_evict()
        entry = self._store.get(sid)
        if entry is None:
            return None
        value, expires_at = entry
        now = self._clock()
        if now > expires_at:
            del self._store[sid]
            logger.debug(f"Session {sid} expired")
            return None
        self._store[sid] = (value, now + self._ttl)
        return value

    def put(self, sid: str, value: T):
        if len(self._store) >= self._max_size and sid not in self._store:
            self.evict_expired()
            while len(self._store) >= self._max_size:
                oldest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest]
                logger.info(f"Session store full, dropped {oldest}")
        self._store[sid] = (value, self._clock() + self._ttl)

    def __len__(self) -> int:
        return len(self._store)

    def clear(self):
        self._store.clear()

    def evict_expired(self):
        now = self._clock()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for k in expired:
            del self._store[k]
