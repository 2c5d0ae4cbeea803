"""One-time action token operations.

IMPORT CONVENTION:
- Core accesses these through core.action_token property

Only SHA-256 fingerprints of secrets are stored (see utils/secret.py).

Lifecycle of a row:
- issue() inserts a live row and retires every earlier live row for the
  same user and purpose (a resent link replaces the previous one)
- consume() flips consumed_at from NULL exactly once. The UPDATE predicate
  is the compare-and-swap: of two concurrent consumers only one sees
  rowcount == 1.
"""

import sqlite3
from datetime import datetime, timedelta

from ..utils import isodatetime, uid

PURPOSE_CONFIRM_EMAIL = "confirm-email"
PURPOSE_RESET_PASSWORD = "reset-password"


class ActionTokenOperations:
    """Action token table operations."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def issue(
        self,
        user_id: str,
        purpose: str,
        token_hash: str,
        lifetime: timedelta,
        now: datetime | None = None,
    ) -> str:
        """Store a new token fingerprint, retiring older live tokens.

        Args:
            user_id: Owner of the token
            purpose: PURPOSE_CONFIRM_EMAIL or PURPOSE_RESET_PASSWORD
            token_hash: Fingerprint of the raw secret
            lifetime: How long the token stays valid
            now: Issue time (defaults to current UTC time)

        Returns:
            The new token row ID
        """
        issued = now or isodatetime.utcnow()
        issued_at = isodatetime.to_timestamp(issued)

        self.retire_live(user_id, purpose, issued_at)

        token_id = uid.generate_uuid()
        self._conn.execute(
            """INSERT INTO action_tokens (
                id, user_id, purpose, token_hash, created_at, expires_at, consumed_at
            ) VALUES (?, ?, ?, ?, ?, ?, NULL)""",
            (
                token_id, user_id, purpose, token_hash, issued_at,
                isodatetime.to_timestamp(issued + lifetime),
            )
        )
        return token_id

    def retire_live(self, user_id: str, purpose: str, at: str) -> int:
        """Mark every unconsumed token of this user and purpose as used."""
        cursor = self._conn.execute(
            """UPDATE action_tokens SET consumed_at = ?
               WHERE user_id = ? AND purpose = ? AND consumed_at IS NULL""",
            (at, user_id, purpose)
        )
        return cursor.rowcount

    def consume(
        self,
        user_id: str,
        purpose: str,
        token_hash: str,
        now: datetime | None = None,
    ) -> bool:
        """Consume a live, unexpired token matching the fingerprint.

        Returns:
            True if this call consumed the token, False if no live token
            matched (unknown, wrong user/purpose, expired, already used).
        """
        at = isodatetime.to_timestamp(now or isodatetime.utcnow())
        cursor = self._conn.execute(
            """UPDATE action_tokens SET consumed_at = ?
               WHERE user_id = ? AND purpose = ? AND token_hash = ?
                 AND consumed_at IS NULL AND expires_at > ?""",
            (at, user_id, purpose, token_hash, at)
        )
        return cursor.rowcount == 1
