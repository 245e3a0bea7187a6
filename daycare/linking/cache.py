"""
Read-through cache for resolved children.

Never the source of truth: entries expire after a short TTL and are dropped
on every redemption, repair or issuance write.
"""

import os
import time
from typing import Dict, Optional, Tuple

from .resolver import Resolution

RESOLVER_CACHE_TTL_SECONDS = float(os.getenv("RESOLVER_CACHE_TTL_SECONDS", "30"))


class ResolutionCache:
    """Per-user resolution cache keyed by user id."""

    def __init__(self, ttl: float = RESOLVER_CACHE_TTL_SECONDS):
        self.ttl = ttl
        # Storage: {user_id: (stored_at, email, resolution)}
        self.entries: Dict[str, Tuple[float, Optional[str], Resolution]] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, user_id: str, email: Optional[str]) -> Optional[Resolution]:
        if not self.enabled:
            return None

        entry = self.entries.get(user_id)
        if entry is None:
            return None

        stored_at, cached_email, resolution = entry
        if cached_email != email or time.monotonic() - stored_at > self.ttl:
            del self.entries[user_id]
            return None
        return resolution

    def put(self, user_id: str, email: Optional[str], resolution: Resolution):
        # Degraded results are recomputed on the next load
        if not self.enabled or resolution.errors:
            return
        self.entries[user_id] = (time.monotonic(), email, resolution)

    def invalidate(self, user_id: Optional[str] = None):
        """Drop one user's entry, or everything when no user is given."""
        if user_id is None:
            self.entries.clear()
        else:
            self.entries.pop(user_id, None)
