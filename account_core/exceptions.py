"""Custom exceptions for Account Core.

All application errors derive from AccountCoreError and carry a
human-readable message plus an optional details dict. The Flask error
handlers in main.py turn them into JSON responses.

Auth workflow failures are AuthError subclasses. Each one carries an
AuthErrorKind (for logs and callers) and the HTTP status it maps to.
Token decoding and verification never raise these; they return a
Rejection value instead.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class AccountCoreError(Exception):
    """Base exception for all Account Core errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ResourceNotFound(AccountCoreError):
    """Requested resource does not exist."""


class ValidationError(AccountCoreError):
    """Request data failed validation."""


class DatabaseError(AccountCoreError):
    """Database operation failed."""


class AuthenticationError(AccountCoreError):
    """Request is missing valid authentication."""


# ============================================================================
# Auth Workflow Errors
# ============================================================================


class AuthErrorKind(str, Enum):
    USER_NOT_FOUND = "user_not_found"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    ALREADY_CONFIRMED = "already_confirmed"
    BAD_CREDENTIALS = "bad_credentials"
    DUPLICATE_EMAIL = "duplicate_email"
    VALIDATION_ERRORS = "validation_errors"
    MALFORMED_TOKEN = "malformed_token"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    INVALID_TOKEN = "invalid_token"
    NOTIFICATION_DELIVERY_FAILED = "notification_delivery_failed"


@dataclass(frozen=True)
class Rejection:
    """Expected failure returned by token decoding and verification."""

    kind: AuthErrorKind
    reason: str = ""


class AuthError(AccountCoreError):
    """Base class for auth workflow failures.

    Subclasses set ``kind`` and a default ``status_code``. The status can be
    overridden per raise site where the same kind maps to a different HTTP
    status (e.g. an unconfirmed email is 401 at login but 400 on reset).
    """

    kind: AuthErrorKind
    status_code: int = 400

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, details)
        if status_code is not None:
            self.status_code = status_code


class UserNotFound(AuthError):
    kind = AuthErrorKind.USER_NOT_FOUND
    status_code = 401


class EmailNotConfirmed(AuthError):
    kind = AuthErrorKind.EMAIL_NOT_CONFIRMED
    status_code = 401


class AlreadyConfirmed(AuthError):
    kind = AuthErrorKind.ALREADY_CONFIRMED


class BadCredentials(AuthError):
    kind = AuthErrorKind.BAD_CREDENTIALS
    status_code = 401


class DuplicateEmail(AuthError):
    kind = AuthErrorKind.DUPLICATE_EMAIL


class ValidationErrors(AuthError):
    """Per-field validation failures from the credential store.

    ``fields`` maps a field name to its list of messages and is also
    exposed through ``details``.
    """

    kind = AuthErrorKind.VALIDATION_ERRORS

    def __init__(self, fields: dict[str, list[str]], message: str = "Validation failed"):
        super().__init__(message, {"fields": fields})
        self.fields = fields


class MalformedToken(AuthError):
    kind = AuthErrorKind.MALFORMED_TOKEN


class InvalidOrExpiredToken(AuthError):
    kind = AuthErrorKind.INVALID_OR_EXPIRED_TOKEN


class InvalidToken(AuthError):
    kind = AuthErrorKind.INVALID_TOKEN
    status_code = 401


class NotificationDeliveryFailed(AuthError):
    kind = AuthErrorKind.NOTIFICATION_DELIVERY_FAILED
