"""
Memoization cache for generated schedules.

Entries are keyed by a fingerprint of the full normalized input. Two
requests racing on the same key only cause duplicate work: the last
writer wins and both results are identical.
"""
import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from models.schemas import ScheduleResult

logger = logging.getLogger(__name__)


def build_fingerprint(payload: Any) -> str:
    """Stable sha256 over the canonical JSON form of the payload."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ScheduleCache:
    """LRU cache with a time-to-live, storing deep copies of results."""

    def __init__(
        self,
        ttl_seconds: float = 120,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[float, ScheduleResult]]" = OrderedDict()

    def get(self, key: str) -> Optional[ScheduleResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        created_at, result = entry
        if self.clock() - created_at > self.ttl_seconds:
            self._entries.pop(key, None)
            return None

        self._entries.move_to_end(key)
        return result.model_copy(deep=True)

    def set(self, key: str, result: ScheduleResult) -> None:
        self._entries[key] = (self.clock(), result.model_copy(deep=True))
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted schedule cache entry {evicted[:12]}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
