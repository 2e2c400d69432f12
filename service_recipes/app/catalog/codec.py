"""
Serialized form of the recipe listing held in the cache.
"""

from typing import List

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from ..models import Recipe

_LISTING = TypeAdapter(List[Recipe])


class CacheDecodeError(ValueError):
    """Cached blob could not be turned back into recipes."""


def encode_recipes(recipes: List[Recipe]) -> str:
    """JSON array of recipes, timestamps as ISO-8601 with offset."""
    return _LISTING.dump_json(recipes).decode("utf-8")


def decode_recipes(blob: str) -> List[Recipe]:
    try:
        return _LISTING.validate_json(blob)
    except (PydanticValidationError, TypeError) as e:
        raise CacheDecodeError(str(e)) from e
