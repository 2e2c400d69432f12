"""
Cache layer contract.
"""

from abc import ABC, abstractmethod
from typing import Union


class _CacheMiss:
    """Sentinel for an absent key. Distinct from an empty listing blob."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "CACHE_MISS"


CACHE_MISS = _CacheMiss()


class CacheLayer(ABC):
    """
    Key to serialized-blob store without TTLs.

    Every method raises CacheUnavailable when the backend fails; callers
    decide whether that is fatal (it never is for the recipe catalog).
    """

    async def start(self):
        """Open connections."""

    async def stop(self):
        """Release connections."""

    async def health_check(self) -> bool:
        return True

    @abstractmethod
    async def get(self, key: str) -> Union[str, _CacheMiss]:
        """Return the blob stored under ``key`` or CACHE_MISS."""

    @abstractmethod
    async def set(self, key: str, blob: str) -> None:
        """Store ``blob`` under ``key`` with no expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
