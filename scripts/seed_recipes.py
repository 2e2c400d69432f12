#!/usr/bin/env python3
"""
Bootstrap a recipe collection from a JSON file.

The file holds a JSON array of recipe objects (``name``, ``tags``,
``ingredients``, ``instructions``). Any ``id`` or ``publishedAt`` fields are
ignored: identities come from the store and timestamps from the import. The
listing cache is evicted once after the last insert.
"""

import argparse
import asyncio
import json
from pathlib import Path
import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from pydantic import ValidationError as PydanticValidationError  # noqa: E402

from shared.config import BaseConfig  # noqa: E402
from shared.errors import RecipesApiException  # noqa: E402
from shared.logging import configure_logging  # noqa: E402
from service_recipes.app.models import RecipeDraft  # noqa: E402
from service_recipes.app.catalog.writer import CatalogWriter, validate_draft  # noqa: E402
from service_recipes.app.persistence.postgres import PostgresPool, PostgresRecipeStore  # noqa: E402
from service_recipes.app.cache.redis_cache import RedisCache  # noqa: E402


def load_drafts(path: Path) -> list:
    """Parse the recipes file into drafts."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON array")
    return [RecipeDraft.model_validate(item) for item in payload]


async def seed(*, postgres_dsn: str, namespace: str, redis_url: str, listing_key: str, drafts: list) -> dict:
    """Import drafts and return a summary."""
    pool = PostgresPool(postgres_dsn, namespace)
    store = PostgresRecipeStore(pool)
    cache = RedisCache(redis_url)
    writer = CatalogWriter(store, cache, listing_key=listing_key)

    await store.start()
    await cache.start()
    try:
        created = await writer.import_recipes(drafts)
    finally:
        await cache.stop()
        await store.stop()

    return {
        "namespace": namespace,
        "imported": len(created),
        "ids": [recipe.id for recipe in created],
    }


def _parse_args() -> argparse.Namespace:
    defaults = BaseConfig()
    parser = argparse.ArgumentParser(description="Import a JSON array of recipes into the store.")
    parser.add_argument("file", type=Path, help="Path to the recipes JSON file")
    parser.add_argument("--postgres-dsn", default=defaults.postgres_dsn, help="PostgreSQL DSN")
    parser.add_argument("--namespace", default=defaults.db_namespace, help="Schema holding the collections")
    parser.add_argument("--redis-url", default=defaults.redis_url, help="Redis connection URL")
    parser.add_argument("--cache-key", default=defaults.listing_cache_key, help="Listing cache key to evict")
    parser.add_argument("--dry-run", action="store_true", help="Validate the file without writing anything")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("recipes-seed", os.getenv("RECIPES_LOG_LEVEL", "info"))

    try:
        drafts = load_drafts(args.file)
    except (OSError, ValueError, PydanticValidationError) as exc:
        print(f"[seed] cannot read {args.file}: {exc}", file=sys.stderr)
        return 1

    if args.dry_run:
        try:
            for draft in drafts:
                validate_draft(draft)
        except RecipesApiException as exc:
            print(f"[seed] invalid recipe: {exc.message} {exc.details}", file=sys.stderr)
            return 1
        print(f"[seed] DRY RUN - {len(drafts)} recipes would be imported")
        return 0

    try:
        summary = asyncio.run(
            seed(
                postgres_dsn=args.postgres_dsn,
                namespace=args.namespace,
                redis_url=args.redis_url,
                listing_key=args.cache_key,
                drafts=drafts,
            )
        )
    except KeyboardInterrupt:
        return 130
    except RecipesApiException as exc:
        print(f"[seed] failed: {exc.message} {exc.details}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
