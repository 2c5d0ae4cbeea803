"""Tests for ActionTokenOperations.

Tokens are identified by fingerprint; these tests use literal strings as
stand-ins for SHA-256 digests.
"""

from datetime import timedelta

import pytest

from account_core.db import get_core
from account_core.db.action_token import PURPOSE_CONFIRM_EMAIL, PURPOSE_RESET_PASSWORD
from account_core.utils import isodatetime

DAY = timedelta(hours=24)


@pytest.fixture
def user_id(db_path):
    with get_core(atomic=True) as core:
        return core.user.create("alice@example.com", "alice@example.com", "hash")


def _issue(user_id, token_hash, purpose=PURPOSE_CONFIRM_EMAIL, now=None):
    with get_core(atomic=True) as core:
        return core.action_token.issue(user_id, purpose, token_hash, lifetime=DAY, now=now)


def _consume(user_id, token_hash, purpose=PURPOSE_CONFIRM_EMAIL, now=None):
    with get_core(atomic=True) as core:
        return core.action_token.consume(user_id, purpose, token_hash, now=now)


def _count_live(user_id, purpose=PURPOSE_CONFIRM_EMAIL, now=None):
    """Unconsumed, unexpired tokens for this user and purpose."""
    at = isodatetime.to_timestamp(now or isodatetime.utcnow())
    core = get_core()
    try:
        return core._conn.execute(
            """SELECT COUNT(*) FROM action_tokens
               WHERE user_id = ? AND purpose = ? AND consumed_at IS NULL
                 AND expires_at > ?""",
            (user_id, purpose, at)
        ).fetchone()[0]
    finally:
        core.close()


class TestIssue:
    def test_issue_creates_live_token(self, user_id):
        token_id = _issue(user_id, "digest-1")

        assert token_id
        assert _count_live(user_id) == 1

    def test_issue_retires_earlier_tokens_of_same_purpose(self, user_id):
        _issue(user_id, "digest-1")
        _issue(user_id, "digest-2")

        assert _count_live(user_id) == 1
        assert _consume(user_id, "digest-1") is False
        assert _consume(user_id, "digest-2") is True

    def test_purposes_are_independent(self, user_id):
        _issue(user_id, "digest-1", PURPOSE_CONFIRM_EMAIL)
        _issue(user_id, "digest-2", PURPOSE_RESET_PASSWORD)

        assert _count_live(user_id, PURPOSE_CONFIRM_EMAIL) == 1
        assert _count_live(user_id, PURPOSE_RESET_PASSWORD) == 1

    def test_expiry_is_issue_time_plus_lifetime(self, user_id):
        issued = isodatetime.utcnow()
        _issue(user_id, "digest-1", now=issued)

        core = get_core()
        try:
            row = core._conn.execute("SELECT created_at, expires_at FROM action_tokens").fetchone()
        finally:
            core.close()
        assert isodatetime.to_datetime(row["created_at"]) == issued
        assert isodatetime.to_datetime(row["expires_at"]) == issued + DAY


class TestConsume:
    def test_consume_once(self, user_id):
        _issue(user_id, "digest-1")

        assert _consume(user_id, "digest-1") is True
        assert _consume(user_id, "digest-1") is False
        assert _count_live(user_id) == 0

    def test_wrong_digest(self, user_id):
        _issue(user_id, "digest-1")
        assert _consume(user_id, "digest-x") is False

    def test_wrong_purpose(self, user_id):
        _issue(user_id, "digest-1", PURPOSE_CONFIRM_EMAIL)
        assert _consume(user_id, "digest-1", PURPOSE_RESET_PASSWORD) is False

    def test_expiry_boundary(self, user_id):
        issued = isodatetime.utcnow()
        _issue(user_id, "digest-1", now=issued)

        # Valid strictly before expires_at, dead at it
        assert _consume(user_id, "digest-1", now=issued + DAY) is False
        assert _count_live(user_id, now=issued + DAY - timedelta(microseconds=1)) == 1
        assert _consume(user_id, "digest-1", now=issued + DAY - timedelta(microseconds=1)) is True

    def test_rolled_back_consume_leaves_token_live(self, user_id):
        _issue(user_id, "digest-1")

        with pytest.raises(RuntimeError):
            with get_core(atomic=True) as core:
                assert core.action_token.consume(user_id, PURPOSE_CONFIRM_EMAIL, "digest-1")
                raise RuntimeError("state change failed")

        assert _count_live(user_id) == 1
