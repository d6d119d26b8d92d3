"""Bounded LRU result cache with time-to-live expiry.

Not thread-safe: the owning RerankService serializes all access.
"""

import hashlib
import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from models.requests import RerankRequest
from models.responses import RerankResult
from services.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: list[RerankResult]
    inserted_at: float


def fingerprint_request(request: RerankRequest) -> str:
    """SHA-256 over the canonical JSON of every field that affects the results.

    top_n is excluded: the full sorted list is cached and truncated on read.
    """
    payload = {
        "user_events": [e.model_dump() for e in request.user_events],
        "candidate_ids": list(request.candidate_ids),
        "gamma": request.gamma,
        "goal": request.goal.model_dump(),
        "profile": request.profile.model_dump(),
        "include_alignment": request.include_alignment,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ResultCache:
    def __init__(
        self,
        max_entries: int = 256,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._closed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _check_open(self) -> None:
        if self._closed:
            raise CacheUnavailableError("Result cache is closed")

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self.ttl_seconds

    def get(self, key: str) -> list[RerankResult] | None:
        """Return the cached results, or None when absent or expired.

        A hit moves the entry to the most-recently-used end; its insertion
        time is left unchanged so the TTL still counts from the original write.
        """
        self._check_open()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            logger.debug("Cache entry %s expired", key[:12])
            return None
        self._entries.move_to_end(key)
        return list(entry.value)

    def put(self, key: str, value: list[RerankResult]) -> None:
        """Purge expired entries, evict LRU entries to make room, then insert."""
        self._check_open()
        now = self._clock()
        for stale in [k for k, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[stale]

        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evicted %s", evicted[:12])

        self._entries[key] = CacheEntry(key=key, value=list(value), inserted_at=now)

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        self.clear()
        self._closed = True
