"""Authentication Pydantic schemas for API validation."""

from .auth import (
    ActionResult,
    ConfirmEmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionClaims,
    UserCredential,
    UserSession,
)

__all__ = [
    "ActionResult",
    "ConfirmEmailRequest",
    "LoginRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionClaims",
    "UserCredential",
    "UserSession",
]
