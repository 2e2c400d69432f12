"""
Write paths for the recipe catalog.

Every mutation finishes against the store before the listing key is
evicted. A crash between the two steps leaves a stale listing that the next
successful write clears; it never hides a record the store no longer has
behind a fresh-looking cache entry.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, TYPE_CHECKING

from shared.errors import CacheUnavailable, ValidationError
from shared.logging import get_logger
from ..cache.base import CacheLayer
from ..models import Recipe, RecipeDraft
from ..persistence.base import RecipeStore
from .reader import DEFAULT_LISTING_KEY, ListingGeneration

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_draft(draft: RecipeDraft) -> None:
    """Raise ValidationError unless the draft has a name and ingredients."""
    problems = {}
    if not draft.name or not draft.name.strip():
        problems["name"] = "must not be empty"
    if not draft.ingredients:
        problems["ingredients"] = "must contain at least one ingredient"
    if problems:
        raise ValidationError("Invalid recipe", details=problems)


class CatalogWriter:
    """Applies create/update/delete to the store and evicts the listing."""

    def __init__(
        self,
        store: RecipeStore,
        cache: CacheLayer,
        *,
        listing_key: str = DEFAULT_LISTING_KEY,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], datetime] = _utcnow,
        generation: Optional[ListingGeneration] = None,
    ):
        self.store = store
        self.cache = cache
        self.listing_key = listing_key
        self.metrics = metrics
        self.clock = clock
        self.generation = generation or ListingGeneration()
        self.logger = get_logger("recipes.catalog.writer")

    async def create(self, draft: RecipeDraft) -> Recipe:
        """Validate, persist and return a new recipe."""
        validate_draft(draft)
        published_at = self.clock()

        record_id = await self.store.insert(draft, published_at)
        await self._evict_listing()

        self.logger.info("Recipe created", recipe_id=record_id, name=draft.name)
        return Recipe.from_draft(record_id, draft, published_at)

    async def update(self, record_id: str, draft: RecipeDraft) -> None:
        """Replace the mutable fields of a recipe. RecordNotFound skips eviction."""
        validate_draft(draft)
        await self.store.update_by_id(record_id, draft)
        await self._evict_listing()
        self.logger.info("Recipe updated", recipe_id=record_id)

    async def delete(self, record_id: str) -> None:
        """Remove a recipe. RecordNotFound skips eviction."""
        await self.store.delete_by_id(record_id)
        await self._evict_listing()
        self.logger.info("Recipe deleted", recipe_id=record_id)

    async def import_recipes(self, drafts: Iterable[RecipeDraft]) -> List[Recipe]:
        """
        Bulk create used to bootstrap a collection.

        All drafts are validated before anything is written. The listing is
        evicted once, after the last insert; a store failure midway still
        evicts so the recipes already written become visible.
        """
        drafts = list(drafts)
        for index, draft in enumerate(drafts):
            try:
                validate_draft(draft)
            except ValidationError as e:
                raise ValidationError(f"Invalid recipe at index {index}", details=e.details) from e

        created: List[Recipe] = []
        try:
            for draft in drafts:
                published_at = self.clock()
                record_id = await self.store.insert(draft, published_at)
                created.append(Recipe.from_draft(record_id, draft, published_at))
        finally:
            if created:
                await self._evict_listing()

        self.logger.info("Recipes imported", count=len(created))
        return created

    async def _evict_listing(self):
        # Advanced even when the delete fails
        self.generation.advance()
        try:
            await self.cache.delete(self.listing_key)
        except CacheUnavailable as e:
            # The stale listing stays until the next successful eviction.
            self.logger.warning("Cache eviction failed", cache_key=self.listing_key, error=e.message)
            if self.metrics:
                self.metrics.increment_counter("cache_write_failures_total", operation="delete")
