import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Pattern, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyPattern = Union[str, Pattern[str], Callable[[str], bool]]

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLStore:
    """In-memory key/value store with per-entry expiry.

    Eviction is lazy: an expired entry stays in the map until a ``get`` on
    its key removes it. There is no size bound. Every operation is a single
    dict mutation, so callers on the same event loop never observe a
    half-applied update.
    """

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.time):
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            return default

        if self._clock() > entry.expires_at:
            del self._cache[key]
            return default

        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._cache[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def keys(self) -> List[str]:
        """Snapshot of stored keys, including expired entries not yet evicted."""
        return list(self._cache.keys())

    def delete_pattern(self, pattern: KeyPattern) -> int:
        """Remove every key matching ``pattern``.

        ``pattern`` may be a predicate, a compiled regex or a regex string;
        regexes match anywhere in the key.
        """
        if callable(pattern):
            matches = pattern
        else:
            matches = re.compile(pattern).search

        doomed = [key for key in self._cache if matches(key)]
        for key in doomed:
            del self._cache[key]

        if doomed:
            logger.debug("Removed %d cache entries by pattern", len(doomed))
        return len(doomed)

    def stats(self) -> Dict[str, int]:
        now = self._clock()
        active = sum(1 for entry in self._cache.values() if entry.expires_at > now)
        return {"size": len(self._cache), "active_entries": active}

    def size(self) -> int:
        return len(self._cache)

    async def with_cache(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl: Optional[int] = None,
    ) -> T:
        """Return the cached value for ``key`` or await ``producer`` and store it.

        Two concurrent misses on one key both run the producer; the later
        ``set`` wins.
        """
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        result = await producer()
        self.set(key, result, ttl)
        return result


def overlap_key(user_fid: int, target_fid: int) -> str:
    return f"overlap_{user_fid}_{target_fid}"


def following_key(fid: int) -> str:
    return f"following_{fid}"


def following_profiles_key(fid: int) -> str:
    return f"following_profiles_{fid}"


def suggested_follows_key(fid: int, limit: int) -> str:
    return f"suggested_follows_{fid}_{limit}"


def profile_key(fid: int) -> str:
    return f"profile_{fid}"


def portfolio_key(fid: int) -> str:
    return f"portfolio_{fid}"


def user_key_pattern(fid: int) -> Pattern[str]:
    """Regex matching every key that belongs to ``fid``."""
    f = re.escape(str(fid))
    return re.compile(
        rf"^(?:overlap_{f}_\d+|overlap_\d+_{f}|following_{f}|following_profiles_{f}"
        rf"|profile_{f}|portfolio_{f}|suggested_follows_{f}_\d+)$"
    )


__all__ = [
    "CacheEntry",
    "TTLStore",
    "overlap_key",
    "following_key",
    "following_profiles_key",
    "suggested_follows_key",
    "profile_key",
    "portfolio_key",
    "user_key_pattern",
]
