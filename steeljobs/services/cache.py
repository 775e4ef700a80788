"""
In-process read cache for profile reads, keyed by (collection, candidate_id).

Writers invalidate; readers fall back to the store on a miss.
"""
import time
from typing import Any, Iterable, Optional


class ReadCache:
    def __init__(self, ttl_seconds: float = 300.0):
        self.ttl_seconds = ttl_seconds
        self._entries = {}

    def get(self, collection: str, candidate_id: int) -> Optional[Any]:
        entry = self._entries.get((collection, candidate_id))
        if entry is None:
            return None
        stored_at, value = entry
        if time.monotonic() - stored_at > self.ttl_seconds:
            self._entries.pop((collection, candidate_id), None)
            return None
        return value

    def set(self, collection: str, candidate_id: int, value: Any) -> None:
        self._entries[(collection, candidate_id)] = (time.monotonic(), value)

    def invalidate(self, candidate_id: int, collections: Iterable[str]) -> None:
        for collection in collections:
            self._entries.pop((collection, candidate_id), None)

    def clear(self) -> None:
        self._entries.clear()


read_cache = ReadCache()


def get_read_cache() -> ReadCache:
    return read_cache
