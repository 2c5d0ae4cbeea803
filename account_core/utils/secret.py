"""One-time secret generation and fingerprinting.

Secrets are 32 random bytes rendered as standard base64. That alphabet
includes '+', '/' and '=' which are not safe in a query string, so links
carry them through auth.codec. Only the SHA-256 fingerprint of a secret is
ever stored.
"""

import base64
import hashlib
import secrets

SECRET_BYTES = 32


def generate_secret() -> str:
    """Generate a random one-time secret as a base64 string."""
    return base64.b64encode(secrets.token_bytes(SECRET_BYTES)).decode("ascii")


def fingerprint(secret: str) -> str:
    """SHA-256 hex digest of a secret, suitable for storage and lookup."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()
