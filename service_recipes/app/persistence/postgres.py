"""
PostgreSQL persistence layer for the Recipes Service.
"""

import asyncio
import re
import uuid
from contextlib import asynccontextmanager, nullcontext
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

import asyncpg
from shared.logging import get_logger
from shared.errors import RecordNotFound, StoreUnavailable, ConfigurationError
from ..models import Recipe, RecipeDraft
from .base import RecipeStore, CredentialStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


_NAMESPACE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_BACKEND_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresPool:
    """Connection pool shared by the recipe and credential stores."""

    def __init__(self, dsn: str, namespace: str, metrics: Optional["MetricsCollector"] = None):
        if not _NAMESPACE_PATTERN.match(namespace):
            raise ConfigurationError(f"Invalid database namespace: {namespace!r}")
        self.dsn = dsn
        self.namespace = namespace
        self.metrics = metrics
        self.logger = get_logger("recipes.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the pool and make sure the tables exist."""
        if self.pool is not None:
            return
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )
            await self._create_tables()
            self.logger.info("PostgreSQL persistence started", namespace=self.namespace)
        except _BACKEND_ERRORS as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise StoreUnavailable("start", details={"error": str(e)}) from e

    async def stop(self):
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute(f'CREATE SCHEMA IF NOT EXISTS "{self.namespace}"')
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS "{self.namespace}".recipes (
                    seq BIGSERIAL UNIQUE,
                    id VARCHAR(64) PRIMARY KEY,
                    name TEXT NOT NULL,
                    tags TEXT[] NOT NULL DEFAULT '{{}}',
                    ingredients TEXT[] NOT NULL DEFAULT '{{}}',
                    instructions TEXT[] NOT NULL DEFAULT '{{}}',
                    published_at TIMESTAMP WITH TIME ZONE NOT NULL
                );
            """)
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS "{self.namespace}".users (
                    username VARCHAR(255) PRIMARY KEY,
                    password_digest CHAR(64) NOT NULL
                );
            """)

    @asynccontextmanager
    async def connection(self, operation: str):
        """Acquire a connection, translating backend failures to StoreUnavailable."""
        if self.pool is None:
            raise StoreUnavailable(operation, "Store not started")
        timer = (
            self.metrics.time_operation("store_query_duration_seconds", operation=operation)
            if self.metrics else nullcontext()
        )
        try:
            with timer:
                async with self.pool.acquire() as conn:
                    yield conn
        except _BACKEND_ERRORS as e:
            self.logger.error("Store operation failed", operation=operation, error=str(e))
            if self.metrics:
                self.metrics.increment_counter("store_errors_total", operation=operation)
            raise StoreUnavailable(operation, details={"error": str(e)}) from e

    async def health_check(self) -> bool:
        try:
            async with self.connection("health_check") as conn:
                await conn.fetchval("SELECT 1")
                return True
        except StoreUnavailable:
            return False


class PostgresRecipeStore(RecipeStore):
    """Recipe table in PostgreSQL."""

    def __init__(self, pool: PostgresPool):
        self.db = pool
        self.table = f'"{pool.namespace}".recipes'

    async def start(self):
        await self.db.start()

    async def stop(self):
        await self.db.stop()

    async def health_check(self) -> bool:
        return await self.db.health_check()

    async def insert(self, draft: RecipeDraft, published_at: datetime) -> str:
        record_id = uuid.uuid4().hex
        async with self.db.connection("insert") as conn:
            await conn.execute(
                f"""
                INSERT INTO {self.table} (id, name, tags, ingredients, instructions, published_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                """,
                record_id, draft.name, draft.tags, draft.ingredients,
                draft.instructions, published_at
            )
        self.db.logger.info("Recipe inserted", recipe_id=record_id)
        return record_id

    async def list_all(self) -> List[Recipe]:
        async with self.db.connection("list_all") as conn:
            rows = await conn.fetch(f"SELECT * FROM {self.table} ORDER BY seq ASC")
        return [self._row_to_recipe(row) for row in rows]

    async def find_by_id(self, record_id: str) -> Recipe:
        async with self.db.connection("find_by_id") as conn:
            row = await conn.fetchrow(f"SELECT * FROM {self.table} WHERE id = $1", record_id)
        if not row:
            raise RecordNotFound(record_id)
        return self._row_to_recipe(row)

    async def update_by_id(self, record_id: str, draft: RecipeDraft) -> None:
        async with self.db.connection("update_by_id") as conn:
            result = await conn.execute(
                f"""
                UPDATE {self.table}
                SET name = $2, tags = $3, ingredients = $4, instructions = $5
                WHERE id = $1
                """,
                record_id, draft.name, draft.tags, draft.ingredients, draft.instructions
            )
        if result != "UPDATE 1":
            raise RecordNotFound(record_id)
        self.db.logger.info("Recipe updated", recipe_id=record_id)

    async def delete_by_id(self, record_id: str) -> None:
        async with self.db.connection("delete_by_id") as conn:
            result = await conn.execute(f"DELETE FROM {self.table} WHERE id = $1", record_id)
        if result != "DELETE 1":
            raise RecordNotFound(record_id)
        self.db.logger.info("Recipe deleted", recipe_id=record_id)

    async def find_by_tag(self, tag: str) -> List[Recipe]:
        async with self.db.connection("find_by_tag") as conn:
            rows = await conn.fetch(
                f"""
                SELECT * FROM {self.table}
                WHERE EXISTS (SELECT 1 FROM unnest(tags) AS t WHERE lower(t) = lower($1))
                ORDER BY seq ASC
                """,
                tag
            )
        return [self._row_to_recipe(row) for row in rows]

    def _row_to_recipe(self, row) -> Recipe:
        return Recipe(
            id=row['id'],
            name=row['name'],
            tags=list(row['tags']),
            ingredients=list(row['ingredients']),
            instructions=list(row['instructions']),
            published_at=row['published_at']
        )


class PostgresCredentialStore(CredentialStore):
    """Users table in PostgreSQL."""

    def __init__(self, pool: PostgresPool):
        self.db = pool
        self.table = f'"{pool.namespace}".users'

    async def start(self):
        await self.db.start()

    async def stop(self):
        await self.db.stop()

    async def health_check(self) -> bool:
        return await self.db.health_check()

    async def get_digest(self, username: str) -> Optional[str]:
        async with self.db.connection("get_digest") as conn:
            return await conn.fetchval(
                f"SELECT password_digest FROM {self.table} WHERE username = $1", username
            )

    async def upsert(self, username: str, password_digest: str) -> None:
        async with self.db.connection("upsert_credential") as conn:
            await conn.execute(
                f"""
                INSERT INTO {self.table} (username, password_digest) VALUES ($1, $2)
                ON CONFLICT (username) DO UPDATE SET password_digest = EXCLUDED.password_digest
                """,
                username, password_digest
            )
