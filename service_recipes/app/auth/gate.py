"""
Request admission for mutating routes.
"""

from fastapi import Request

from shared.errors import Unauthorized
from shared.logging import get_logger, set_subject
from .token_authority import TokenAuthority, strip_bearer


class AuthGate:
    """Rejects requests without a valid token before any handler runs."""

    def __init__(self, authority: TokenAuthority):
        self.authority = authority
        self.logger = get_logger("recipes.auth.gate")

    async def admit(self, request: Request) -> str:
        """
        FastAPI dependency for gated routes.

        Reads the token from the ``Authorization`` header (raw or with a
        ``Bearer`` prefix) and returns the subject. All authenticated
        subjects have the same rights.
        """
        token = strip_bearer(request.headers.get("Authorization"))
        if not token:
            self.logger.warning("Request without token", path=request.url.path)
            raise Unauthorized("Authorization header required")

        try:
            subject = self.authority.validate(token)
        except Unauthorized:
            self.logger.warning("Request with rejected token", path=request.url.path)
            raise

        request.state.subject = subject
        set_subject(subject)
        return subject
