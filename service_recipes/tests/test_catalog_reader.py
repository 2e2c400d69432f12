"""
Unit tests for the cache-aside catalog reader.
"""

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from shared.errors import CacheUnavailable, StoreUnavailable
from shared.metrics import MetricsCollector
from service_recipes.app.cache.base import CACHE_MISS
from service_recipes.app.cache.memory import InMemoryCache
from service_recipes.app.catalog.codec import encode_recipes
from service_recipes.app.catalog.reader import CatalogReader, ListingGeneration
from service_recipes.app.catalog.writer import CatalogWriter
from service_recipes.app.models import Recipe, RecipeDraft
from service_recipes.app.persistence.memory import InMemoryRecipeStore


PUBLISHED = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_recipe(record_id: str, name: str, tags=None) -> Recipe:
    return Recipe(
        id=record_id,
        name=name,
        tags=tags or [],
        ingredients=["water"],
        instructions=["boil"],
        published_at=PUBLISHED,
    )


class TestCatalogReader:
    """Test cases for CatalogReader."""

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("recipes")

    @pytest.fixture
    def store(self):
        store = AsyncMock()
        store.list_all.return_value = [make_recipe("r1", "Soup", ["dinner"])]
        return store

    @pytest.fixture
    def cache(self):
        cache = AsyncMock()
        cache.get.return_value = CACHE_MISS
        return cache

    @pytest.fixture
    def reader(self, store, cache, metrics):
        return CatalogReader(store, cache, metrics=metrics)

    @pytest.mark.asyncio
    async def test_hit_does_not_touch_store(self, reader, store, cache, metrics):
        cached = [make_recipe("r9", "Cached Stew")]
        cache.get.return_value = encode_recipes(cached)

        result = await reader.list_recipes()

        assert result == cached
        store.list_all.assert_not_called()
        cache.set.assert_not_called()
        assert metrics.get_sample_value("cache_lookups_total", result="hit") == 1.0

    @pytest.mark.asyncio
    async def test_miss_reads_store_and_populates(self, reader, store, cache, metrics):
        result = await reader.list_recipes()

        assert [r.id for r in result] == ["r1"]
        store.list_all.assert_awaited_once()
        cache.set.assert_awaited_once_with("recipes", encode_recipes(result))
        assert metrics.get_sample_value("cache_lookups_total", result="miss") == 1.0

    @pytest.mark.asyncio
    async def test_cached_empty_listing_is_a_hit(self, reader, store, cache):
        cache.get.return_value = "[]"

        assert await reader.list_recipes() == []
        store.list_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_failure_falls_back_to_store(self, reader, store, cache, metrics):
        cache.get.side_effect = CacheUnavailable("get")
        cache.set.side_effect = CacheUnavailable("set")

        result = await reader.list_recipes()

        assert [r.name for r in result] == ["Soup"]
        assert metrics.get_sample_value("cache_lookups_total", result="error") == 1.0
        assert metrics.get_sample_value("cache_write_failures_total", operation="set") == 1.0

    @pytest.mark.asyncio
    async def test_undecodable_blob_is_treated_as_miss(self, reader, store, cache):
        cache.get.return_value = "{not json"

        result = await reader.list_recipes()

        assert [r.id for r in result] == ["r1"]
        store.list_all.assert_awaited_once()
        cache.set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_failure_propagates_without_populating(self, reader, store, cache):
        store.list_all.side_effect = StoreUnavailable("list_all")

        with pytest.raises(StoreUnavailable):
            await reader.list_recipes()

        cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_listing_key(self, store, cache):
        reader = CatalogReader(store, cache, listing_key="demo:recipes")

        await reader.list_recipes()

        cache.get.assert_awaited_once_with("demo:recipes")

    @pytest.mark.asyncio
    async def test_get_and_search_bypass_cache(self, reader, store, cache):
        store.find_by_id.return_value = make_recipe("r1", "Soup")
        store.find_by_tag.return_value = []

        assert (await reader.get_recipe("r1")).name == "Soup"
        assert await reader.search_by_tag("dinner") == []
        cache.get.assert_not_called()


class TestCatalogReaderWithMemoryBackends:
    """Second read is served from the populated cache."""

    @pytest.mark.asyncio
    async def test_second_listing_comes_from_cache(self):
        store = InMemoryRecipeStore()
        cache = InMemoryCache()
        await store.insert(RecipeDraft(name="Soup", ingredients=["water"]), PUBLISHED)
        reader = CatalogReader(store, cache)

        first = await reader.list_recipes()
        assert "recipes" in cache

        store.list_all = AsyncMock(side_effect=AssertionError("store should not be read"))
        second = await reader.list_recipes()

        assert second == first


class TestListingGeneration:
    """A listing read while a write evicts must not be cached."""

    @pytest.mark.asyncio
    async def test_snapshot_overlapping_a_write_is_not_cached(self):
        store = InMemoryRecipeStore()
        cache = InMemoryCache()
        generation = ListingGeneration()
        reader = CatalogReader(store, cache, generation=generation)
        writer = CatalogWriter(store, cache, generation=generation)

        snapshot_taken = asyncio.Event()
        release = asyncio.Event()
        list_all = store.list_all

        async def slow_list_all():
            snapshot = await list_all()
            snapshot_taken.set()
            await release.wait()
            return snapshot

        store.list_all = slow_list_all
        pending = asyncio.create_task(reader.list_recipes())
        await snapshot_taken.wait()

        await writer.create(RecipeDraft(name="Soup", tags=["dinner"], ingredients=["water"]))
        release.set()

        assert await pending == []
        assert "recipes" not in cache

        store.list_all = list_all
        assert [r.name for r in await reader.list_recipes()] == ["Soup"]
        assert [r.name for r in await reader.list_recipes()] == ["Soup"]

    @pytest.mark.asyncio
    async def test_failed_eviction_still_advances_generation(self):
        generation = ListingGeneration()
        cache = AsyncMock()
        cache.delete.side_effect = CacheUnavailable("delete")
        writer = CatalogWriter(AsyncMock(), cache, generation=generation)

        await writer.delete("r1")

        assert generation.value == 1

    @pytest.mark.asyncio
    async def test_unchanged_generation_populates_cache(self):
        store = InMemoryRecipeStore()
        cache = InMemoryCache()
        reader = CatalogReader(store, cache, generation=ListingGeneration())

        await reader.list_recipes()

        assert "recipes" in cache
