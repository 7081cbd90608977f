"""In-memory TTL cache for compatibility results."""

import time
from typing import Callable, Dict, Optional, Tuple

from .logger import get_logger
from .models import CompatibilityResult

DEFAULT_TTL_SECONDS = 60 * 60


class CompatibilityCache:
    """
    Results keyed by ``user:category:listing``, each with its own expiry.

    Expired entries are dropped lazily on lookup or in bulk by cleanup().
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[CompatibilityResult, float]] = {}

    @staticmethod
    def make_key(user_id: str, listing_id: str, category: str) -> str:
        return f"{user_id}:{category}:{listing_id}"

    def set(self, result: CompatibilityResult, ttl_seconds: Optional[float] = None) -> bool:
        """Store a result; returns False when it lacks a user, listing or category."""
        if not result.user_id or not result.listing_id or not result.category:
            get_logger().warning(
                "Cannot cache compatibility result without user, listing and category",
                user_id=result.user_id,
                listing_id=result.listing_id,
                category=result.category,
            )
            return False
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        key = self.make_key(result.user_id, result.listing_id, result.category)
        self._entries[key] = (result, self.clock() + ttl)
        return True

    def get(self, user_id: str, listing_id: str, category: str) -> Optional[CompatibilityResult]:
        key = self.make_key(user_id, listing_id, category)
        entry = self._entries.get(key)
        if entry is None:
            return None
        result, expires_at = entry
        if expires_at < self.clock():
            del self._entries[key]
            return None
        return result

    def has(self, user_id: str, listing_id: str, category: str) -> bool:
        entry = self._entries.get(self.make_key(user_id, listing_id, category))
        return entry is not None and entry[1] >= self.clock()

    def invalidate(self, user_id: str, listing_id: str, category: str) -> None:
        self._entries.pop(self.make_key(user_id, listing_id, category), None)

    def invalidate_for_user(self, user_id: str) -> int:
        prefix = f"{user_id}:"
        stale = [k for k in self._entries if k.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def invalidate_for_listing(self, listing_id: str) -> int:
        suffix = f":{listing_id}"
        stale = [k for k in self._entries if k.endswith(suffix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self.clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at < now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
