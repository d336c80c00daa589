"""
LMS Backend — Rate Limit Storage
=================================

What:  Storage contract for rate-limit counters, and the in-process default.
How:   RateLimiter only talks to RateLimitStore (get / set / delete / entries),
       so a shared external store can replace the in-process dict to make
       limits hold across workers without touching the limiting algorithm.
Who:   RateLimiter instances; one InMemoryRateLimitStore is shared by all
       preset limiters in a process (keys are namespaced per limiter).

Limitation of the in-memory store:
    Counters live in one process. With N workers a client can make up to
    N × max_requests requests per window, and a restart clears all counters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass
class RateLimitEntry:
    """Requests seen in the current window and when the window resets (epoch ms)."""

    count: int
    reset_time: float

    def is_expired(self, now: float) -> bool:
        return self.reset_time < now


class RateLimitStore(ABC):
    """
    Key-value store for RateLimitEntry objects.

    Contract:
        - At most one entry per key
        - get() returns None for unknown keys
        - entries() returns a snapshot, safe to iterate while deleting
    """

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitEntry]:
        ...

    @abstractmethod
    def set(self, key: str, entry: RateLimitEntry) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def entries(self) -> List[Tuple[str, RateLimitEntry]]:
        ...

    def clear(self) -> None:
        for key, _ in self.entries():
            self.delete(key)

    def __len__(self) -> int:
        return len(self.entries())


class InMemoryRateLimitStore(RateLimitStore):
    """Dict-backed store. Safe under single-threaded asyncio; not across processes."""

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def entries(self) -> List[Tuple[str, RateLimitEntry]]:
        return list(self._entries.items())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide default store shared by the preset limiters
default_store = InMemoryRateLimitStore()
