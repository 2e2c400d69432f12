"""
Recipe catalog: cache-aside reads and invalidating writes over a record
store and a blob cache.
"""

from .reader import CatalogReader, ListingGeneration, DEFAULT_LISTING_KEY
from .writer import CatalogWriter, validate_draft
from .codec import encode_recipes, decode_recipes, CacheDecodeError

__all__ = [
    "CatalogReader",
    "CatalogWriter",
    "ListingGeneration",
    "DEFAULT_LISTING_KEY",
    "validate_draft",
    "encode_recipes",
    "decode_recipes",
    "CacheDecodeError",
]
