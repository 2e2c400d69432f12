"""
Cache-aside reads for the recipe catalog.
"""

from typing import List, Optional, TYPE_CHECKING

from shared.errors import CacheUnavailable
from shared.logging import get_logger
from ..cache.base import CacheLayer, CACHE_MISS
from ..models import Recipe
from ..persistence.base import RecipeStore
from .codec import encode_recipes, decode_recipes, CacheDecodeError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_LISTING_KEY = "recipes"


class ListingGeneration:
    """
    Count of listing evictions in this process.

    Shared by a reader and a writer over the same cache key. A reader that
    sees the count move while it queried the store holds a snapshot that may
    predate a write, and must not cache it.
    """

    def __init__(self):
        self.value = 0

    def advance(self) -> int:
        self.value += 1
        return self.value


class CatalogReader:
    """
    Serves the recipe listing from the cache, falling back to the store.

    Only the full listing is cached, under one aggregate key. Concurrent
    misses each query the store and repopulate the key; no mutex guards
    population. A snapshot read while an eviction happened is returned but
    not cached.
    """

    def __init__(
        self,
        store: RecipeStore,
        cache: CacheLayer,
        *,
        listing_key: str = DEFAULT_LISTING_KEY,
        metrics: Optional["MetricsCollector"] = None,
        generation: Optional[ListingGeneration] = None,
    ):
        self.store = store
        self.cache = cache
        self.listing_key = listing_key
        self.metrics = metrics
        self.generation = generation or ListingGeneration()
        self.logger = get_logger("recipes.catalog.reader")

    async def list_recipes(self) -> List[Recipe]:
        """Return every recipe, from the cached snapshot when one exists."""
        cached = await self._cached_listing()
        if cached is not None:
            return cached

        generation = self.generation.value
        # StoreUnavailable propagates to the caller
        recipes = await self.store.list_all()
        self.logger.info("Listing served from store", count=len(recipes))

        if self.generation.value != generation:
            self.logger.debug("Listing changed during store read, not caching", cache_key=self.listing_key)
            return recipes

        try:
            await self.cache.set(self.listing_key, encode_recipes(recipes))
        except CacheUnavailable as e:
            self.logger.warning("Cache population failed", cache_key=self.listing_key, error=e.message)
            self._count("cache_write_failures_total", operation="set")

        return recipes

    async def get_recipe(self, record_id: str) -> Recipe:
        return await self.store.find_by_id(record_id)

    async def search_by_tag(self, tag: str) -> List[Recipe]:
        return await self.store.find_by_tag(tag)

    async def _cached_listing(self) -> Optional[List[Recipe]]:
        try:
            blob = await self.cache.get(self.listing_key)
        except CacheUnavailable as e:
            self.logger.warning("Cache lookup failed, treating as miss", cache_key=self.listing_key, error=e.message)
            self._count("cache_lookups_total", result="error")
            return None

        if blob is CACHE_MISS:
            self.logger.debug("Cache miss", cache_key=self.listing_key)
            self._count("cache_lookups_total", result="miss")
            return None

        try:
            recipes = decode_recipes(blob)
        except CacheDecodeError as e:
            self.logger.warning("Discarding undecodable cache entry", cache_key=self.listing_key, error=str(e))
            self._count("cache_lookups_total", result="error")
            return None

        self.logger.debug("Cache hit", cache_key=self.listing_key, count=len(recipes))
        self._count("cache_lookups_total", result="hit")
        return recipes

    def _count(self, metric_name: str, **labels):
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
