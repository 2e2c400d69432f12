"""
Test helper functions and factory methods for the Recipes API.
"""

import hashlib
import time
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from dataclasses import dataclass, field
import jwt

from .config import ServiceConfig, get_config


TEST_SECRET = "test-signing-secret"


@dataclass
class TestUser:
    """Test user data."""
    username: str
    password: str = "password123"

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.password.encode("utf-8")).hexdigest()


class FakeClock:
    """Manually advanced clock returning POSIX seconds."""

    def __init__(self, start: Optional[float] = None):
        self.now = float(start if start is not None else 1_700_000_000)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@dataclass
class FakeDateClock:
    """Datetime clock for publication timestamps; ticks one second per call."""
    current: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))

    def __call__(self) -> datetime:
        value = self.current
        self.current = datetime.fromtimestamp(value.timestamp() + 1, tz=timezone.utc)
        return value


class TestDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def create_test_users() -> List[TestUser]:
        """Create test users."""
        return [
            TestUser(username="admin", password="eUbP9shywUygMx7u"),
            TestUser(username="packt", password="RE4zfHB35VPtTkbT"),
        ]

    @staticmethod
    def create_credentials(users: Optional[List[TestUser]] = None) -> Dict[str, str]:
        """Username to digest map for an in-memory credential store."""
        return {user.username: user.digest for user in (users or TestDataFactory.create_test_users())}

    @staticmethod
    def create_recipe_payload(name: str = "Soup", **overrides) -> Dict[str, Any]:
        """Request body for creating a recipe."""
        payload = {
            "name": name,
            "tags": ["dinner"],
            "ingredients": ["water", "salt"],
            "instructions": ["boil", "season"],
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def create_test_recipes() -> List[Dict[str, Any]]:
        """A small, mixed-tag collection."""
        return [
            TestDataFactory.create_recipe_payload(
                "Homemade Pizza",
                tags=["italian", "pizza"],
                ingredients=["flour", "yeast", "tomato"],
            ),
            TestDataFactory.create_recipe_payload(
                "Tomato Soup",
                tags=["Soup", "vegetarian"],
                ingredients=["tomato", "stock"],
            ),
            TestDataFactory.create_recipe_payload(
                "Minestrone",
                tags=["italian", "soup"],
                ingredients=["beans", "pasta", "stock"],
            ),
        ]


class MockTokenGenerator:
    """Generate JWTs outside the token authority, for negative tests."""

    def __init__(self, secret: str = TEST_SECRET):
        self.secret = secret

    def generate_token(
        self,
        subject: Optional[str] = "admin",
        expires_in: int = 600,
        now: Optional[float] = None,
        algorithm: str = "HS256",
        **extra_claims
    ) -> str:
        """Signed token with the given lifetime relative to ``now``."""
        now = time.time() if now is None else now
        payload: Dict[str, Any] = {"iat": int(now), "exp": int(now + expires_in)}
        if subject is not None:
            payload["sub"] = subject
        payload.update(extra_claims)
        return jwt.encode(payload, self.secret, algorithm=algorithm)

    def generate_expired_token(self, subject: str = "admin", now: Optional[float] = None) -> str:
        return self.generate_token(subject, expires_in=-60, now=now)

    def generate_foreign_token(self, subject: str = "admin", now: Optional[float] = None) -> str:
        """Token signed with a secret the service does not hold."""
        return MockTokenGenerator("some-other-secret").generate_token(subject, now=now)


class TestEnvironment:
    """Test environment configuration."""

    @staticmethod
    def get_mock_config() -> Dict[str, Any]:
        """Get mock environment configuration."""
        return {
            "RECIPES_ENV": "test",
            "RECIPES_LOG_LEVEL": "debug",
            "RECIPES_STORE_BACKEND": "memory",
            "RECIPES_CACHE_BACKEND": "memory",
            "RECIPES_JWT_SECRET": TEST_SECRET,
        }

    @staticmethod
    def get_service_config(**overrides) -> ServiceConfig:
        """In-memory service configuration."""
        settings = {
            "env": "test",
            "log_level": "debug",
            "store_backend": "memory",
            "cache_backend": "memory",
            "jwt_secret": TEST_SECRET,
        }
        settings.update(overrides)
        return get_config("recipes", 8080, **settings)


# Global instances for easy access
test_data_factory = TestDataFactory()
test_environment = TestEnvironment()
