"""Process-wide, time-bounded cache of parsed capability documents."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union

from .capabilities import fetch_capabilities
from .errors import ServiceUnavailable
from .types import CapabilityModel, Endpoint

logger = logging.getLogger(__name__)

CapabilityFetcher = Callable[..., CapabilityModel]
TTL = Union[timedelta, float, int]


@dataclass(frozen=True)
class CacheEntry:
    model: CapabilityModel
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


def _ttl_seconds(ttl: TTL) -> float:
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    if seconds < 0:
        raise ValueError("cache ttl must not be negative")
    return seconds


class CapabilityCache:
    """
    Keyed store of capability models with a per-entry expiry.

    Fetches for one endpoint are serialised by a per-key lock, so concurrent
    callers hitting the same expired entry share a single download. The entry
    map itself is guarded by a store lock and only ever holds complete entries.
    Per-key locks are dropped by ``invalidate`` and ``clear`` unless a fetch
    currently holds them.
    """

    def __init__(
        self,
        fetcher: Optional[CapabilityFetcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fetcher = fetcher or fetch_capabilities
        self.clock = clock
        self._entries: Dict[Endpoint, CacheEntry] = {}
        self._key_locks: Dict[Endpoint, threading.Lock] = {}
        self._lock = threading.Lock()

    def fetch_or_get(self, endpoint: Endpoint, ttl: TTL, **fetch_options: Any) -> CapabilityModel:
        """
        Return the capability model of ``endpoint``, fetching it when absent or expired.

        Args:
            endpoint: Service identity
            ttl: Lifetime of a freshly fetched entry
            **fetch_options: Forwarded to the fetcher (timeout, auth, session, ...)

        Raises:
            ServiceUnavailable: If the document could not be fetched or parsed.
                Nothing is cached in that case.
        """
        ttl_seconds = _ttl_seconds(ttl)

        with self._key_lock(endpoint):
            model = self.get(endpoint)
            if model is not None:
                logger.debug("Capabilities cache hit for %s", endpoint.url)
                return model

            logger.debug("Capabilities cache miss for %s", endpoint.url)
            try:
                model = self.fetcher(endpoint, **fetch_options)
            except ServiceUnavailable:
                raise
            except Exception as exc:
                raise ServiceUnavailable(
                    f"Could not load capabilities from {endpoint.url}: {exc}", cause=exc
                ) from exc

            entry = CacheEntry(model=model, expires_at=self.clock() + ttl_seconds)
            with self._lock:
                self._entries[endpoint] = entry
            return model

    def get(self, endpoint: Endpoint) -> Optional[CapabilityModel]:
        """Return the cached model if it has not expired, without fetching."""
        with self._lock:
            entry = self._entries.get(endpoint)
        if entry is None or not entry.is_fresh(self.clock()):
            return None
        return entry.model

    def invalidate(self, endpoint: Endpoint) -> None:
        with self._lock:
            self._entries.pop(endpoint, None)
            lock = self._key_locks.get(endpoint)
            if lock is not None and not lock.locked():
                del self._key_locks[endpoint]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            # Locks held by an in-flight fetch stay until a later clear.
            self._key_locks = {key: lock for key, lock in self._key_locks.items() if lock.locked()}

    def __contains__(self, endpoint: object) -> bool:
        return isinstance(endpoint, Endpoint) and self.get(endpoint) is not None

    def __len__(self) -> int:
        now = self.clock()
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.is_fresh(now))

    def _key_lock(self, endpoint: Endpoint) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(endpoint)
            if lock is None:
                lock = self._key_locks[endpoint] = threading.Lock()
            return lock


default_cache = CapabilityCache()
