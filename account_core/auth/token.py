"""Session token service.

Session tokens are HS512-signed JWTs carrying a fixed claim set:

- sub: user ID
- email, given_name, surname: profile fields for the client
- iss: configured issuer
- iat / exp: issue and expiry time (Unix seconds)

Tokens are stateless. Validity depends only on the signature, the issuer
and the expiry at verification time. Audience is not validated: the
service issues tokens for a single client.

verify() never raises for a bad token. Malformed, expired, forged and
tampered tokens all come back as the same Rejection so callers cannot
tell the causes apart.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

import jwt
from pydantic import ValidationError as PydanticValidationError

from ..config import TokenSettings
from ..exceptions import AuthErrorKind, Rejection
from ..utils import isodatetime
from .schemas import SessionClaims, UserCredential

logger = logging.getLogger(__name__)

ALGORITHM = "HS512"
REQUIRED_CLAIMS = ["sub", "email", "iss", "iat", "exp"]


class SessionTokenIssuer:
    """Builds and verifies signed session tokens."""

    def __init__(
        self,
        config: TokenSettings,
        clock: Callable[[], datetime] = isodatetime.utcnow,
    ):
        self._config = config
        self._clock = clock

    def issue(self, user: UserCredential) -> str:
        """Sign a session token for a fully populated user record."""
        issued = self._clock()
        expires = issued + timedelta(days=self._config.expiry_days)
        payload = {
            "sub": user.id,
            "email": user.email,
            "given_name": user.first_name,
            "surname": user.last_name,
            "iss": self._config.issuer,
            "iat": isodatetime.to_unix(issued),
            "exp": isodatetime.to_unix(expires),
        }
        return jwt.encode(payload, self._config.secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims | Rejection:
        """Check signature, issuer and expiry and return the embedded claims."""
        try:
            payload = jwt.decode(
                token,
                self._config.secret_key,
                algorithms=[ALGORITHM],
                issuer=self._config.issuer,
                options={"require": REQUIRED_CLAIMS, "verify_aud": False},
            )
            return SessionClaims(
                subject_id=payload["sub"],
                email=payload["email"],
                given_name=payload.get("given_name", ""),
                surname=payload.get("surname", ""),
                issuer=payload["iss"],
                issued_at=payload["iat"],
                expires_at=payload["exp"],
            )
        except (jwt.InvalidTokenError, PydanticValidationError) as e:
            # Cause stays in the debug log only
            logger.debug(f"Session token rejected: {e.__class__.__name__}")
            return Rejection(AuthErrorKind.INVALID_TOKEN)

    def expiry_remaining(self, token: str) -> timedelta | None:
        """Time until a valid token expires, or None if it is not valid."""
        claims = self.verify(token)
        if isinstance(claims, Rejection):
            return None
        remaining = isodatetime.from_unix(claims.expires_at) - isodatetime.utcnow()
        if remaining.total_seconds() <= 0:
            return None
        return remaining
