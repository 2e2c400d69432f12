"""
Persistence package for the Recipes Service.

Provides the abstract record and credential stores plus two backends:

- postgres: asyncpg pool with one table per collection in a schema namespace.
- memory: lock-guarded dicts for local runs and tests.
"""

from .base import RecipeStore, CredentialStore
from .memory import InMemoryRecipeStore, InMemoryCredentialStore

__all__ = [
    "RecipeStore",
    "CredentialStore",
    "InMemoryRecipeStore",
    "InMemoryCredentialStore",
]
