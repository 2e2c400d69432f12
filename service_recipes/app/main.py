"""
Recipes service: cache-aside recipe catalog behind token-gated writes.
"""

from typing import List, Optional

from fastapi import Depends, Query, Request

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ConfigurationError, ValidationError

from .models import Recipe, RecipeDraft, MessageResponse, SignInRequest, TokenResponse
from .persistence.base import RecipeStore, CredentialStore
from .persistence.memory import InMemoryRecipeStore, InMemoryCredentialStore
from .cache.base import CacheLayer
from .cache.memory import InMemoryCache
from .catalog.reader import CatalogReader, ListingGeneration
from .catalog.writer import CatalogWriter
from .auth.token_authority import TokenAuthority, IssuedToken
from .auth.gate import AuthGate


SERVICE_NAME = "recipes"
DEFAULT_PORT = 8080


class RecipesService(BaseService):
    """Recipes service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[RecipeStore] = None,
        credentials: Optional[CredentialStore] = None,
        cache: Optional[CacheLayer] = None,
        clock=None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config or get_config(SERVICE_NAME, DEFAULT_PORT))

        if self.config.jwt_secret is None or not self.config.jwt_secret.get_secret_value():
            raise ConfigurationError("RECIPES_JWT_SECRET must be set")

        self.store = store or self._build_store()
        self.credentials = credentials or self._build_credentials()
        self.cache = cache or self._build_cache()

        # One generation per listing key, shared by reader and writer
        generation = ListingGeneration()
        self.reader = CatalogReader(
            self.store,
            self.cache,
            listing_key=self.config.listing_cache_key,
            metrics=self.metrics,
            generation=generation
        )
        self.writer = CatalogWriter(
            self.store,
            self.cache,
            listing_key=self.config.listing_cache_key,
            metrics=self.metrics,
            generation=generation
        )

        authority_kwargs = {"clock": clock} if clock is not None else {}
        self.token_authority = TokenAuthority(
            self.config.jwt_secret.get_secret_value(),
            self.credentials,
            issue_ttl=self.config.issue_ttl_seconds,
            refresh_ttl=self.config.refresh_ttl_seconds,
            refresh_window=self.config.refresh_window_seconds,
            metrics=self.metrics,
            **authority_kwargs
        )
        self.auth_gate = AuthGate(self.token_authority)

        self._setup_recipes_routes()

    def _build_store(self) -> RecipeStore:
        if self.config.store_backend == "memory":
            return InMemoryRecipeStore()
        from .persistence.postgres import PostgresRecipeStore
        return PostgresRecipeStore(self._postgres_pool())

    def _build_credentials(self) -> CredentialStore:
        if self.config.store_backend == "memory":
            return InMemoryCredentialStore()
        from .persistence.postgres import PostgresCredentialStore
        return PostgresCredentialStore(self._postgres_pool())

    def _postgres_pool(self):
        if not hasattr(self, "_pool"):
            from .persistence.postgres import PostgresPool
            self._pool = PostgresPool(self.config.postgres_dsn, self.config.db_namespace, metrics=self.metrics)
        return self._pool

    def _build_cache(self) -> CacheLayer:
        if self.config.cache_backend == "memory":
            return InMemoryCache()
        from .cache.redis_cache import RedisCache
        return RedisCache(self.config.redis_url)

    def _setup_recipes_routes(self):
        """Set up recipe and auth routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Recipes API",
                "version": "1.0.0",
                "capabilities": ["cache_aside", "token_auth", "persistence"]
            }

        @self.app.get("/recipes", response_model=List[Recipe])
        async def list_recipes():
            """List every recipe, served from cache when possible."""
            return await self.reader.list_recipes()

        # Registered before /recipes/{recipe_id} so "search" is not taken for an id
        @self.app.get("/recipes/search", response_model=List[Recipe])
        async def search_recipes(tag: Optional[str] = Query(None, description="Tag to match, case-insensitive")):
            """Find recipes carrying a tag."""
            if tag is None or not tag.strip():
                raise ValidationError("Query parameter 'tag' is required")
            return await self.reader.search_by_tag(tag.strip())

        @self.app.get("/recipes/{recipe_id}", response_model=Recipe)
        async def get_recipe(recipe_id: str):
            """Get one recipe."""
            return await self.reader.get_recipe(recipe_id)

        @self.app.post("/recipes", response_model=Recipe)
        async def create_recipe(draft: RecipeDraft, subject: str = Depends(self.auth_gate.admit)):
            """Create a recipe."""
            return await self.writer.create(draft)

        @self.app.put("/recipes/{recipe_id}", response_model=MessageResponse)
        async def update_recipe(recipe_id: str, draft: RecipeDraft, subject: str = Depends(self.auth_gate.admit)):
            """Replace a recipe's name, tags, ingredients and instructions."""
            await self.writer.update(recipe_id, draft)
            return MessageResponse(message="Recipe has been updated")

        @self.app.delete("/recipes/{recipe_id}", response_model=MessageResponse)
        async def delete_recipe(recipe_id: str, subject: str = Depends(self.auth_gate.admit)):
            """Delete a recipe."""
            await self.writer.delete(recipe_id)
            return MessageResponse(message="Recipe has been deleted")

        @self.app.post("/signin", response_model=TokenResponse)
        async def sign_in(request: SignInRequest):
            """Exchange username and password for a token."""
            issued = await self.token_authority.issue(request.username, request.password)
            return self._token_response(issued)

        @self.app.post("/refresh", response_model=TokenResponse)
        async def refresh(request: Request):
            """Exchange a token close to expiry for a new one."""
            issued = self.token_authority.refresh(request.headers.get("Authorization", ""))
            return self._token_response(issued)

    @staticmethod
    def _token_response(issued: IssuedToken) -> TokenResponse:
        return TokenResponse(token=issued.token, expires_at=issued.expires_at)

    async def _startup(self):
        """Open store and cache connections."""
        await self.store.start()
        await self.credentials.start()
        await self.cache.start()
        self.logger.info(
            "Recipes service started",
            store_backend=self.config.store_backend,
            cache_backend=self.config.cache_backend
        )

    async def _shutdown(self):
        await self.cache.stop()
        await self.credentials.stop()
        await self.store.stop()

    async def _check_dependencies(self):
        """Check store and cache."""
        return {
            "store": "ok" if await self.store.health_check() else "error",
            "cache": "ok" if await self.cache.health_check() else "error",
        }


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = RecipesService(config)
    return service.app


if __name__ == "__main__":
    service = RecipesService()
    service.run()
