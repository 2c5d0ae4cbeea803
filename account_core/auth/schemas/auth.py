"""Pydantic schemas for account operations.

Request and response bodies use camelCase on the wire (``loginName``,
``sessionToken``) and snake_case in Python. Models accept either form on
input; dump with ``by_alias=True`` for responses.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Records
# ============================================================================


class UserCredential(CamelModel):
    """A stored user as seen outside the credential store (no password hash)."""

    id: str
    username: str
    email: str
    email_confirmed: bool = False
    first_name: str = ""
    last_name: str = ""
    created_at: datetime
    password_changed_at: datetime


class SessionClaims(BaseModel):
    """Identity claims carried by a session token.

    The claim set is closed: these fields are exactly what a token holds.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str
    email: str
    given_name: str
    surname: str
    issuer: str
    issued_at: int
    expires_at: int


# ============================================================================
# Requests
# ============================================================================


class LoginRequest(CamelModel):
    login_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    """Registration candidate. The email doubles as the login name."""

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=1)

    # Strip before the length and pattern checks run
    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v


class ConfirmEmailRequest(CamelModel):
    email: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


# ============================================================================
# Responses
# ============================================================================


class UserSession(CamelModel):
    """Returned by login and token refresh."""

    first_name: str
    last_name: str
    session_token: str


class ActionResult(CamelModel):
    """Title/message pair returned by the email-driven operations."""

    title: str
    message: str
