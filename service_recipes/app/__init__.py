"""
Recipes Service package.

Serves a recipe collection with token-gated writes. It provides:

- app.main: API surface (recipes, sign in, refresh, health, metrics).
- app.catalog: cache-aside reads and invalidating writes.
- app.persistence: record and credential stores (PostgreSQL, in-memory).
- app.cache: aggregate listing cache (Redis, in-memory).
- app.auth: token authority and the request gate.

Guidelines:
- The store is the source of truth; the cache only ever costs freshness.
- Mutations complete in the store before the listing is evicted.
- Token checks are stateless and recomputed per request.
"""
