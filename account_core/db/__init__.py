"""Database module for Account Core.

This module provides the Core API for database operations.
Core encapsulates connection management and provides access to the
user and action-token operations.

ARCHITECTURE:
- Core owns its connection (no Flask g.db dependency)
- Connection closes on context exit (atomic=True) or when Core is collected
- Each table gets an encapsulated class with related operations

ATOMICITY:
Consuming a one-time secret and applying its state change (confirming the
email, swapping the password hash) must commit together. Use an atomic
Core for that:

    with get_core(atomic=True) as core:
        if core.action_token.consume(user_id, purpose, token_hash):
            core.user.set_email_confirmed(user_id)
        # Both statements commit together on exit

An atomic Core opens its transaction with BEGIN IMMEDIATE, so concurrent
consumers of the same secret are serialized by SQLite's write lock.
"""

from pathlib import Path
from typing import TYPE_CHECKING
import sqlite3
from ..config import settings

if TYPE_CHECKING:
    from .action_token import ActionTokenOperations
    from .user import UserOperations

# Seconds a connection waits on SQLite's write lock before failing
BUSY_TIMEOUT = 10.0


class Core:
    """
    Database Core with table operations.

    Maintains its own connection and transaction state.
    Provides access to operations through properties.

    Connection Lifecycle:
    - atomic=True: Connection closes on __exit__ from context manager
    - atomic=False: Caller commits; connection closes on garbage collection
    """

    def __init__(self, connection: sqlite3.Connection, atomic: bool = False):
        """Initialize Core with a database connection.

        Args:
            connection: SQLite connection with row_factory set to sqlite3.Row
            atomic: If True, Core MUST be used as context manager.
        """
        self._conn = connection
        self._atomic = atomic
        self._user_ops = None
        self._action_token_ops = None

    @property
    def user(self) -> "UserOperations":
        """User record operations (lazy-loaded, cached)."""
        if self._user_ops is None:
            from .user import UserOperations
            self._user_ops = UserOperations(self._conn)
        return self._user_ops

    @property
    def action_token(self) -> "ActionTokenOperations":
        """One-time action token operations (lazy-loaded, cached)."""
        if self._action_token_ops is None:
            from .action_token import ActionTokenOperations
            self._action_token_ops = ActionTokenOperations(self._conn)
        return self._action_token_ops

    def commit(self) -> None:
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Core":
        """Enter context manager and take the write lock.

        Raises:
            RuntimeError: If Core was not created with atomic=True
        """
        if not self._atomic:
            raise RuntimeError(
                "Core must be created with atomic=True for context manager use. "
                "Use: with db.get_core(atomic=True) as core:"
            )
        self._conn.execute("BEGIN IMMEDIATE")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager, committing or rolling back transaction."""
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            # Always close connection
            self._conn.close()

    def __del__(self):
        """Close the connection if still open during garbage collection."""
        if hasattr(self, "_conn") and self._conn:
            try:
                self._conn.close()
            except sqlite3.Error:
                # Connection may already be closed or invalid
                pass


def _create_connection() -> sqlite3.Connection:
    """Create a fresh database connection.

    Returns:
        SQLite connection with row_factory set to sqlite3.Row
        and foreign keys enabled.
    """
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_core(atomic: bool = False) -> Core:
    """
    Get a database Core instance.

    Args:
        atomic: If True, returns a Core that MUST be used as context manager.
                Use when several statements must commit together.
                If False (default), the caller commits writes explicitly.

    Returns:
        Core instance with user/action_token operations

    Examples:
        Read-only lookup:
        >>> core = get_core()
        >>> row = core.user.get_by_email("alice@example.com")

        Atomic consume-and-apply:
        >>> with get_core(atomic=True) as core:
        ...     core.action_token.consume(user_id, "confirm-email", digest)
        ...     core.user.set_email_confirmed(user_id)
    """
    conn = _create_connection()
    return Core(conn, atomic=atomic)


# ============================================================================
# DATABASE INITIALIZATION
# ============================================================================

def init_db():
    """Initialize database by running schema.sql if not already initialized."""
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(str(db_path)) as db:
        # Check if database is already initialized
        cursor = db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='_schema_metadata'"
        )
        if cursor.fetchone():
            return

        # Fresh database - apply current schema
        schema_path = Path(__file__).parent.parent / "schema" / "schema.sql"
        with open(schema_path, "r") as f:
            schema_sql = f.read()
        db.executescript(schema_sql)
        db.commit()
