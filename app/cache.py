import fnmatch
import json
import logging
import time
from typing import Any, Dict, Tuple

from app.config import settings

logger = logging.getLogger("notehub.cache")

PUBLIC_NOTES_PREFIX = "public-notes"
TAGS_PREFIX = "tags"


class MemoryCache:
    """In-process TTL cache with glob-pattern deletion.

    State is per process: invalidation only reaches the calling worker, so run a
    single worker or set NOTEHUB_CACHE_ENABLED=false when scaling out.

    Every method logs and swallows its own failures so callers can treat the
    cache as optional.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._store: Dict[str, Tuple[float | None, str]] = {}

    def _alive(self, key: str) -> bool:
        entry = self._store.get(key)
        if entry is None:
            return False
        expires_at, _ = entry
        if expires_at is not None and expires_at <= time.monotonic():
            self._store.pop(key, None)
            return False
        return True

    async def get(self, key: str) -> Any:
        if not self.enabled:
            return None
        try:
            if not self._alive(key):
                return None
            return json.loads(self._store[key][1])
        except Exception as exc:
            logger.warning("CACHE_GET_FAILED key=%s error=%s", key, exc)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if not self.enabled:
            return
        try:
            expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
            self._store[key] = (expires_at, json.dumps(value))
        except Exception as exc:
            logger.warning("CACHE_SET_FAILED key=%s error=%s", key, exc)

    async def delete(self, key: str) -> None:
        if not self.enabled:
            return
        try:
            self._store.pop(key, None)
        except Exception as exc:
            logger.warning("CACHE_DELETE_FAILED key=%s error=%s", key, exc)

    async def delete_pattern(self, pattern: str) -> int:
        if not self.enabled:
            return 0
        try:
            keys = [key for key in list(self._store) if fnmatch.fnmatchcase(key, pattern)]
            for key in keys:
                self._store.pop(key, None)
            return len(keys)
        except Exception as exc:
            logger.warning("CACHE_DELETE_PATTERN_FAILED pattern=%s error=%s", pattern, exc)
            return 0

    async def exists(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            return self._alive(key)
        except Exception as exc:
            logger.warning("CACHE_EXISTS_FAILED key=%s error=%s", key, exc)
            return False

    def clear(self) -> None:
        self._store.clear()


cache = MemoryCache(enabled=settings.CACHE_ENABLED)


def build_cache_key(prefix: str, user_id: int | None, url: str) -> str:
    return f"{prefix}:{user_id if user_id is not None else 'anonymous'}:{url}"


async def invalidate_public_notes() -> None:
    try:
        removed = await cache.delete_pattern(f"{PUBLIC_NOTES_PREFIX}:*")
        logger.debug("CACHE_INVALIDATE pattern=%s:* removed=%s", PUBLIC_NOTES_PREFIX, removed)
    except Exception as exc:
        logger.warning("CACHE_INVALIDATE_FAILED pattern=%s:* error=%s", PUBLIC_NOTES_PREFIX, exc)


async def invalidate_tags() -> None:
    try:
        await cache.delete_pattern(f"{TAGS_PREFIX}:*")
    except Exception as exc:
        logger.warning("CACHE_INVALIDATE_FAILED pattern=%s:* error=%s", TAGS_PREFIX, exc)
