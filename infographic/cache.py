"""
Response cache for rendered infographics.

Keys are derived from the exact request body bytes. The cache is a
best-effort memoization layer: two concurrent requests for the same body can
both miss and both render, and the later write simply stores the same bytes.
"""

import hashlib
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, Union

from infographic.utils.logging import get_logger

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "infographic:"


def build_cache_key(body: Union[bytes, str]) -> str:
    """
    Hash the raw request body.

    The body is not canonicalized: reordered fields or extra whitespace give a
    different key.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return CACHE_KEY_PREFIX + hashlib.sha256(body).hexdigest()


@dataclass(frozen=True)
class CachedResponse:
    """A rendered response as stored in the cache."""
    content: bytes
    media_type: str
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


class ResponseCache(ABC):
    """
    Abstract base class for response caches.

    Implementations must tolerate concurrent ``put`` calls for the same key.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedResponse]:
        """Return the cached response, or None on a miss or expiry."""
        pass

    @abstractmethod
    async def put(self, key: str, response: CachedResponse) -> None:
        """Store a response under ``key``."""
        pass


class InMemoryResponseCache(ResponseCache):
    """Process-local cache with a fixed freshness window and a size bound."""

    def __init__(
        self,
        ttl_seconds: float = 86400,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, CachedResponse]]" = OrderedDict()

    async def get(self, key: str) -> Optional[CachedResponse]:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, response = item
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return response

    async def put(self, key: str, response: CachedResponse) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, response)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted {evicted} from response cache")

    def __len__(self) -> int:
        return len(self._entries)
