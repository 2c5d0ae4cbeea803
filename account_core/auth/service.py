"""Password hashing, password policy and user record mapping."""

import sqlite3

import bcrypt

from ..config import PasswordPolicy, settings
from ..utils import isodatetime
from .schemas import UserCredential

# bcrypt only reads the first 72 bytes of input
BCRYPT_MAX_BYTES = 72


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_work_factor)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a bcrypt hash. Never raises on mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Corrupt or non-bcrypt hash
        return False


# ============================================================================
# Password Policy
# ============================================================================


def check_password_policy(password: str, policy: PasswordPolicy) -> list[str]:
    """Return the list of policy violations for a password (empty if valid)."""
    problems = []
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        problems.append(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    if len(password) < policy.min_length:
        problems.append(f"Password must be at least {policy.min_length} characters")
    if policy.require_digit and not any(c.isdigit() for c in password):
        problems.append("Password must contain at least one digit")
    if policy.require_lowercase and not any(c.islower() for c in password):
        problems.append("Password must contain at least one lowercase letter")
    if policy.require_uppercase and not any(c.isupper() for c in password):
        problems.append("Password must contain at least one uppercase letter")
    if policy.require_non_alphanumeric and all(c.isalnum() for c in password):
        problems.append("Password must contain at least one non-alphanumeric character")
    return problems


# ============================================================================
# Row Mapping
# ============================================================================


def row_to_user(row: sqlite3.Row) -> UserCredential:
    return UserCredential(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        email_confirmed=bool(row["email_confirmed"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        created_at=isodatetime.to_datetime(row["created_at"]),
        password_changed_at=isodatetime.to_datetime(row["password_changed_at"]),
    )
