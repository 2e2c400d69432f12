"""
In-memory stores.

The tables are plain dicts guarded by an asyncio lock; every read hands out
copies so handlers never share a mutable record.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from shared.errors import RecordNotFound
from shared.logging import get_logger
from ..models import Recipe, RecipeDraft
from .base import RecipeStore, CredentialStore


class InMemoryRecipeStore(RecipeStore):
    """Recipe table keyed by identity, insertion ordered."""

    def __init__(self):
        self.logger = get_logger("recipes.persistence.memory")
        self._records: Dict[str, Recipe] = {}
        self._lock = asyncio.Lock()

    async def insert(self, draft: RecipeDraft, published_at: datetime) -> str:
        record_id = uuid.uuid4().hex
        async with self._lock:
            self._records[record_id] = Recipe.from_draft(record_id, draft, published_at)
        self.logger.debug("Recipe inserted", recipe_id=record_id)
        return record_id

    async def list_all(self) -> List[Recipe]:
        async with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    async def find_by_id(self, record_id: str) -> Recipe:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFound(record_id)
            return record.model_copy(deep=True)

    async def update_by_id(self, record_id: str, draft: RecipeDraft) -> None:
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFound(record_id)
            self._records[record_id] = Recipe.from_draft(record_id, draft, current.published_at)

    async def delete_by_id(self, record_id: str) -> None:
        async with self._lock:
            if self._records.pop(record_id, None) is None:
                raise RecordNotFound(record_id)

    async def find_by_tag(self, tag: str) -> List[Recipe]:
        wanted = tag.lower()
        async with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if any(t.lower() == wanted for t in record.tags)
            ]


class InMemoryCredentialStore(CredentialStore):
    """Username to digest map."""

    def __init__(self, credentials: Optional[Dict[str, str]] = None):
        self._digests: Dict[str, str] = dict(credentials or {})
        self._lock = asyncio.Lock()

    async def get_digest(self, username: str) -> Optional[str]:
        async with self._lock:
            return self._digests.get(username)

    async def upsert(self, username: str, password_digest: str) -> None:
        async with self._lock:
            self._digests[username] = password_digest
