"""Authentication module for Account Core.

This module provides the token lifecycle and account workflows:
- Session token issuing and verification (token)
- Transport encoding of one-time secrets for email links (codec)
- Credential storage and single-use secret consumption (store, service)
- Login, registration, confirmation and password reset (workflow)
- HTTP endpoints and the bearer-token decorator (api, decorators)

Account endpoints (under settings.api_prefix):
- POST /login
- POST /register
- PUT  /confirm-email
- POST /resend-confirmation/<email>
- POST /forgot-password/<email>
- PUT  /reset-password
- GET  /refresh-token
"""

from . import codec, schemas, token, workflow

__all__ = ["codec", "schemas", "token", "workflow"]
