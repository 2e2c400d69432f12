"""
Token issuance, validation and bounded refresh.

Tokens are HS256 JWTs carrying ``sub``, ``iat`` and ``exp``. Nothing is kept
server side: every call recomputes the token state from its bytes and the
current time, so a token cannot be revoked before it expires.
"""

import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from jose import jwt
from jose.exceptions import JWTError

from shared.errors import (
    AuthenticationFailed,
    ConfigurationError,
    InvalidToken,
    RefreshNotEligible,
    RefreshTooEarly,
    Unauthorized,
)
from shared.logging import get_logger
from ..persistence.base import CredentialStore
from .passwords import digest_password, digests_match

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


ALGORITHM = "HS256"

# Compared against when the username is unknown, so both failure paths do the same work.
_UNKNOWN_USER_DIGEST = "0" * 64


class TokenState(str, Enum):
    """Token states, derived per call."""
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of a token."""
    subject: str
    expires_at: float
    issued_at: Optional[float] = None


@dataclass(frozen=True)
class TokenInspection:
    state: TokenState
    claims: Optional[TokenClaims] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class IssuedToken:
    token: str
    subject: str
    expires_at: datetime


class TokenAuthority:
    """Issues, validates and refreshes signed tokens."""

    def __init__(
        self,
        secret: str,
        credentials: CredentialStore,
        *,
        issue_ttl: int = 600,
        refresh_ttl: int = 300,
        refresh_window: int = 30,
        clock: Callable[[], float] = time.time,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if not secret:
            raise ConfigurationError("signing secret must not be empty")
        if min(issue_ttl, refresh_ttl, refresh_window) <= 0:
            raise ConfigurationError("token lifetimes must be positive")
        if refresh_ttl <= refresh_window:
            raise ConfigurationError("refresh_ttl must exceed refresh_window")

        self._secret = secret
        self.credentials = credentials
        self.issue_ttl = issue_ttl
        self.refresh_ttl = refresh_ttl
        self.refresh_window = refresh_window
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("recipes.auth.tokens")

    async def issue(self, username: str, password: str) -> IssuedToken:
        """Exchange valid credentials for a token. StoreUnavailable propagates."""
        supplied = digest_password(password)
        stored = await self.credentials.get_digest(username)

        matched = digests_match(supplied, stored if stored is not None else _UNKNOWN_USER_DIGEST)
        if stored is None or not matched:
            self.logger.warning("Sign in rejected", username=username)
            self._count("issue", "rejected")
            raise AuthenticationFailed()

        issued = self._mint(username, self.issue_ttl)
        self.logger.info("Token issued", subject=username, expires_at=issued.expires_at.isoformat())
        self._count("issue", "ok")
        return issued

    def validate(self, token: str) -> str:
        """Return the subject of a valid token or raise Unauthorized."""
        inspection = self.inspect(token)
        if inspection.state is not TokenState.VALID:
            self._count("validate", inspection.state.value)
            raise Unauthorized(details={"state": inspection.state.value})
        self._count("validate", "ok")
        return inspection.claims.subject

    def refresh(self, token: str) -> IssuedToken:
        """
        Exchange a token that is about to expire for a fresh one.

        Only tokens with 0 < remaining <= refresh_window qualify. Expired
        tokens raise RefreshNotEligible; tokens with more time left raise
        RefreshTooEarly.
        """
        inspection = self.inspect(token)
        if inspection.state is TokenState.INVALID:
            self._count("refresh", "invalid")
            raise InvalidToken(details={"error": inspection.error})

        remaining = inspection.claims.expires_at - self.clock()
        if remaining <= 0:
            self._count("refresh", "expired")
            raise RefreshNotEligible()
        if remaining > self.refresh_window:
            self._count("refresh", "too_early")
            raise RefreshTooEarly(details={"remaining_seconds": int(remaining)})

        issued = self._mint(inspection.claims.subject, self.refresh_ttl)
        self.logger.info("Token refreshed", subject=issued.subject, expires_at=issued.expires_at.isoformat())
        self._count("refresh", "ok")
        return issued

    def inspect(self, token: str) -> TokenInspection:
        """Verify the signature and classify the token against the current time."""
        token = strip_bearer(token)
        if not token:
            return TokenInspection(TokenState.INVALID, error="empty token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except JWTError as e:
            return TokenInspection(TokenState.INVALID, error=str(e))

        claims = self._claims_from_payload(payload)
        if claims is None:
            return TokenInspection(TokenState.INVALID, error="missing sub or exp claim")

        if self.clock() >= claims.expires_at:
            return TokenInspection(TokenState.EXPIRED, claims)
        return TokenInspection(TokenState.VALID, claims)

    def _mint(self, subject: str, ttl: int) -> IssuedToken:
        now = self.clock()
        expires_at = math.ceil(now + ttl)
        token = jwt.encode(
            {"sub": subject, "iat": int(now), "exp": expires_at},
            self._secret,
            algorithm=ALGORITHM,
        )
        return IssuedToken(
            token=token,
            subject=subject,
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )

    @staticmethod
    def _claims_from_payload(payload: Dict[str, Any]) -> Optional[TokenClaims]:
        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            return None
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            return None
        issued_at = payload.get("iat")
        return TokenClaims(
            subject=subject,
            expires_at=float(expires_at),
            issued_at=float(issued_at) if isinstance(issued_at, (int, float)) else None,
        )

    def _count(self, operation: str, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("token_operations_total", operation=operation, outcome=outcome)


def strip_bearer(value: Optional[str]) -> str:
    """Accept both a raw token and ``Bearer <token>``."""
    if not value:
        return ""
    value = value.strip()
    if value[:7].lower() == "bearer ":
        return value[7:].strip()
    return value
