"""User record operations.

IMPORT CONVENTION:
- Core accesses these through core.user property
- NO direct import needed when using Core API

Usernames and emails are stored lower-cased. Lookups lower-case their
argument, so every match is case-insensitive.
"""

import sqlite3

from ..utils import isodatetime, uid


class UserOperations:
    """User table operations. Rows are returned as sqlite3.Row."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_by_id(self, user_id: str) -> sqlite3.Row | None:
        return self._conn.execute(
            "SELECT * FROM users WHERE id = ?",
            (user_id,)
        ).fetchone()

    def get_by_username(self, username: str) -> sqlite3.Row | None:
        return self._conn.execute(
            "SELECT * FROM users WHERE username = ?",
            (username.lower(),)
        ).fetchone()

    def get_by_email(self, email: str) -> sqlite3.Row | None:
        return self._conn.execute(
            "SELECT * FROM users WHERE email = ?",
            (email.lower(),)
        ).fetchone()

    def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
    ) -> str:
        """Insert a new unconfirmed user.

        Returns:
            The auto-generated user ID (UUID v4 string)

        Raises:
            sqlite3.IntegrityError: If username or email is already taken
        """
        user_id = uid.generate_uuid()
        now = isodatetime.now()
        self._conn.execute(
            """INSERT INTO users (
                id, username, email, password_hash, email_confirmed,
                first_name, last_name, created_at, updated_at, password_changed_at
            ) VALUES (?, ?, ?, ?, 0, ?, ?, ?, ?, ?)""",
            (
                user_id, username.lower(), email.lower(), password_hash,
                first_name, last_name, now, now, now,
            )
        )
        return user_id

    def set_email_confirmed(self, user_id: str) -> None:
        self._conn.execute(
            "UPDATE users SET email_confirmed = 1, updated_at = ? WHERE id = ?",
            (isodatetime.now(), user_id)
        )

    def set_password_hash(self, user_id: str, password_hash: str) -> None:
        """Replace the password hash and stamp password_changed_at."""
        now = isodatetime.now()
        self._conn.execute(
            """UPDATE users
               SET password_hash = ?, password_changed_at = ?, updated_at = ?
               WHERE id = ?""",
            (password_hash, now, now, user_id)
        )
