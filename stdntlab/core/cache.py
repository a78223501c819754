"""
Per-user resource cache.

Entries are keyed by (user_id, resource) and expire after a TTL. Writers
invalidate the keys they affect instead of toggling per-feature flags.
"""

import time
import logging
from typing import Any, Dict, Hashable, Optional, Tuple

from stdntlab.config import settings

logger = logging.getLogger(__name__)

TODOS = "todos"
GROUPS = "groups"
SESSIONS = "sessions"

_MISSING = object()


class ResourceCache:
    def __init__(self, ttl_seconds: Optional[float] = None, max_size: int = 1000):
        self.ttl_seconds = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_size = max_size
        self._entries: Dict[Tuple[Hashable, str], Tuple[Any, float]] = {}

    def get(self, user_id: Hashable, resource: str, default: Any = None) -> Any:
        key = (user_id, resource)
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default
        value, expiry = entry
        if time.monotonic() >= expiry:
            del self._entries[key]
            return default
        return value

    def set(self, user_id: Hashable, resource: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        if len(self._entries) >= self.max_size:
            self._evict_expired()
            if len(self._entries) >= self.max_size:
                return
        self._entries[(user_id, resource)] = (value, time.monotonic() + self.ttl_seconds)

    def invalidate(self, user_id: Hashable, resource: str) -> None:
        self._entries.pop((user_id, resource), None)

    def invalidate_resource(self, resource: str) -> None:
        """Drop every user's entry for a resource (e.g. a group-wide change)."""
        for key in [k for k in self._entries if k[1] == resource]:
            del self._entries[key]
        logger.debug("Invalidated cached %s for all users", resource)

    def clear(self) -> None:
        self._entries.clear()

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for key in [k for k, (_, expiry) in self._entries.items() if now >= expiry]:
            del self._entries[key]


resource_cache = ResourceCache()


def get_resource_cache() -> ResourceCache:
    return resource_cache
