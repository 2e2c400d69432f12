"""Password digests. Stored digests are compared, never reversed."""

import hashlib
import hmac


def digest_password(password: str) -> str:
    """Hex SHA-256 of the UTF-8 password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def digests_match(supplied: str, stored: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))
