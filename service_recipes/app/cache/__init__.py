"""
Cache package for the Recipes Service.

Holds the aggregate recipe listing as a single serialized blob. Backends:
Redis for deployments and an in-process dict for local runs and tests.
"""

from .base import CacheLayer, CACHE_MISS
from .memory import InMemoryCache

__all__ = ["CacheLayer", "CACHE_MISS", "InMemoryCache"]
