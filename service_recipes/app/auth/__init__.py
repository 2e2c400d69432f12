"""
Token lifecycle for the Recipes Service.

- token_authority: HS256 token issuance, validation and windowed refresh.
- gate: FastAPI dependency admitting mutating requests.
- passwords: SHA-256 password digests and constant-time comparison.

Verification is stateless; the signing secret is injected once at startup.
"""

from .token_authority import TokenAuthority, TokenState, IssuedToken, strip_bearer
from .gate import AuthGate
from .passwords import digest_password

__all__ = [
    "TokenAuthority",
    "TokenState",
    "IssuedToken",
    "AuthGate",
    "digest_password",
    "strip_bearer",
]
