"""
Shared utilities for the Recipes API.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application skeleton
- test_helpers: Factories, clocks and token forgers for tests

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
