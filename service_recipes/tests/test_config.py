"""
Tests for service configuration.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from shared.config import get_config
from shared.errors import ConfigurationError
from shared.test_helpers import test_environment
from service_recipes.app.main import RecipesService


def test_defaults():
    config = get_config("recipes", 8080)

    assert config.issue_ttl_seconds == 600
    assert config.refresh_ttl_seconds == 300
    assert config.refresh_window_seconds == 30
    assert config.listing_cache_key == "recipes"


def test_environment_overrides(monkeypatch):
    for key, value in test_environment.get_mock_config().items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("RECIPES_ISSUE_TTL_SECONDS", "120")

    config = get_config("recipes", 8080)

    assert config.store_backend == "memory"
    assert config.issue_ttl_seconds == 120
    assert config.jwt_secret.get_secret_value() == "test-signing-secret"


def test_refresh_ttl_must_exceed_window():
    with pytest.raises(PydanticValidationError):
        get_config("recipes", 8080, refresh_ttl_seconds=30, refresh_window_seconds=30)


def test_lifetimes_must_be_positive():
    with pytest.raises(PydanticValidationError):
        get_config("recipes", 8080, issue_ttl_seconds=0)


def test_unknown_backend_rejected():
    with pytest.raises(PydanticValidationError):
        get_config("recipes", 8080, store_backend="mongo")


def test_service_requires_signing_secret(monkeypatch):
    monkeypatch.delenv("RECIPES_JWT_SECRET", raising=False)
    config = test_environment.get_service_config(jwt_secret=None)

    with pytest.raises(ConfigurationError):
        RecipesService(config)
