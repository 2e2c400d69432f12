"""
Process-local cache used when Redis is not configured.
"""

import asyncio
from typing import Dict, Union

from .base import CacheLayer, CACHE_MISS, _CacheMiss


class InMemoryCache(CacheLayer):
    """Dict-backed cache. Safe for concurrent tasks in one event loop."""

    def __init__(self):
        self._entries: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Union[str, _CacheMiss]:
        async with self._lock:
            return self._entries.get(key, CACHE_MISS)

    async def set(self, key: str, blob: str) -> None:
        async with self._lock:
            self._entries[key] = blob

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
