"""Authentication decorators for protected endpoints.

- @auth_required - Requires a valid session token (Authorization: Bearer)

On success the verified SessionClaims are stored in flask.g.claims.
"""

import logging
from functools import wraps

from flask import current_app, g, request

from ..exceptions import AuthenticationError, InvalidToken, Rejection

logger = logging.getLogger(__name__)


def get_workflow():
    """The AuthWorkflow wired into the current Flask app."""
    return current_app.extensions["auth_workflow"]


def _authenticate_request():
    """
    Verify the bearer token on the current request.

    Raises:
        AuthenticationError: If the Authorization header is missing or malformed
        InvalidToken: If the token fails verification
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        logger.warning("Unauthenticated request to protected endpoint")
        raise AuthenticationError(
            "Authentication required",
            {"code": "missing_auth"}
        )

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            "Invalid authorization header format",
            {"expected": "Authorization: Bearer <token>"}
        )

    claims = get_workflow().issuer.verify(parts[1])
    if isinstance(claims, Rejection):
        logger.warning(f"Session token rejected on {request.path}")
        raise InvalidToken("Invalid or expired token", {"code": "invalid_token"})

    g.claims = claims
    logger.debug(f"Session token accepted for {claims.email}")


def auth_required(f):
    """
    Decorator to require a valid session token for endpoint access.

    Example:
    ```python
    @auth_required
    def protected_endpoint():
        claims = g.claims
        ...
    ```
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return wrapper
