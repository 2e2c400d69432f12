"""
Abstract durable stores for recipes and credentials.

Both stores surface backend failures as ``StoreUnavailable`` so callers can
tell an outage apart from a missing record (``RecordNotFound``).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models import Recipe, RecipeDraft


class RecipeStore(ABC):
    """
    Durable collection of recipes.

    Implementations:
    - PostgresRecipeStore: asyncpg-backed table
    - InMemoryRecipeStore: lock-guarded dict, for local runs and tests
    """

    async def start(self):
        """Open connections."""

    async def stop(self):
        """Release connections."""

    async def health_check(self) -> bool:
        return True

    @abstractmethod
    async def insert(self, draft: RecipeDraft, published_at: datetime) -> str:
        """
        Persist a new recipe.

        Args:
            draft: Client-supplied fields
            published_at: Publication time stamped by the caller

        Returns:
            The identity assigned to the new record
        """

    @abstractmethod
    async def list_all(self) -> List[Recipe]:
        """Return every recipe in insertion order."""

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Recipe:
        """Return one recipe or raise RecordNotFound."""

    @abstractmethod
    async def update_by_id(self, record_id: str, draft: RecipeDraft) -> None:
        """
        Replace the mutable fields of a recipe.

        Identity and publication time are never touched. Raises
        RecordNotFound when no record has this identity.
        """

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> None:
        """Remove a recipe or raise RecordNotFound."""

    @abstractmethod
    async def find_by_tag(self, tag: str) -> List[Recipe]:
        """Return recipes carrying ``tag``, compared case-insensitively."""


class CredentialStore(ABC):
    """Durable collection of (username, password digest) pairs."""

    async def start(self):
        """Open connections."""

    async def stop(self):
        """Release connections."""

    async def health_check(self) -> bool:
        return True

    @abstractmethod
    async def get_digest(self, username: str) -> Optional[str]:
        """Return the stored digest for ``username`` or None."""

    @abstractmethod
    async def upsert(self, username: str, password_digest: str) -> None:
        """Create or replace the credential for ``username``."""
