"""
Tests for the session token issuer.

Tests verify that:
- Tokens carry the fixed claim set (sub, email, given_name, surname, iss, iat, exp)
- Verification returns typed claims for good tokens
- Expired, forged, tampered, wrong-issuer and malformed tokens are all
  rejected with the same INVALID_TOKEN rejection
- Audience is not checked
"""

from datetime import datetime, timedelta, UTC

import jwt as pyjwt
import pytest
from jwt.utils import base64url_decode, base64url_encode

from account_core.auth.schemas import SessionClaims, UserCredential
from account_core.auth.token import SessionTokenIssuer
from account_core.config import TokenSettings
from account_core.exceptions import AuthErrorKind, Rejection
from account_core.utils import isodatetime


@pytest.fixture
def user():
    return UserCredential(
        id="550e8400-e29b-41d4-a716-446655440000",
        username="alice@example.com",
        email="alice@example.com",
        email_confirmed=True,
        first_name="alice",
        last_name="smith",
        created_at=datetime(2026, 10, 1, 10, 30, 0, tzinfo=UTC),
        password_changed_at=datetime(2026, 10, 1, 10, 30, 0, tzinfo=UTC),
    )


def _assert_rejected(result):
    assert isinstance(result, Rejection)
    assert result.kind is AuthErrorKind.INVALID_TOKEN


# ============================================================================
# Token Generation Tests
# ============================================================================


class TestIssue:
    """Tests for SessionTokenIssuer.issue."""

    def test_issue_returns_string(self, issuer, user):
        token = issuer.issue(user)
        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_token_contains_claim_set(self, issuer, user):
        token = issuer.issue(user)
        payload = pyjwt.decode(token, options={"verify_signature": False})

        assert payload["sub"] == user.id
        assert payload["email"] == user.email
        assert payload["given_name"] == user.first_name
        assert payload["surname"] == user.last_name
        assert payload["iss"] == "http://localhost:5000"
        assert isinstance(payload["iat"], int)
        assert isinstance(payload["exp"], int)
        assert "aud" not in payload

    def test_token_signed_with_hs512(self, issuer, user):
        token = issuer.issue(user)
        header = pyjwt.get_unverified_header(token)
        assert header["alg"] == "HS512"

    def test_expiry_uses_configured_days(self, token_settings, user):
        fixed = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)
        issuer = SessionTokenIssuer(token_settings, clock=lambda: fixed)

        payload = pyjwt.decode(issuer.issue(user), options={"verify_signature": False})

        assert payload["iat"] == isodatetime.to_unix(fixed)
        assert payload["exp"] == isodatetime.to_unix(fixed + timedelta(days=7))


# ============================================================================
# Token Verification Tests
# ============================================================================


class TestVerify:
    """Tests for SessionTokenIssuer.verify."""

    def test_verify_valid_token(self, issuer, user):
        claims = issuer.verify(issuer.issue(user))

        assert isinstance(claims, SessionClaims)
        assert claims.subject_id == user.id
        assert claims.email == user.email
        assert claims.given_name == user.first_name
        assert claims.surname == user.last_name
        assert claims.issuer == "http://localhost:5000"
        assert claims.expires_at > claims.issued_at

    def test_expired_token_rejected(self, token_settings, user):
        long_ago = isodatetime.utcnow() - timedelta(days=30)
        stale_issuer = SessionTokenIssuer(token_settings, clock=lambda: long_ago)
        token = stale_issuer.issue(user)

        _assert_rejected(SessionTokenIssuer(token_settings).verify(token))

    def test_token_signed_with_other_key_rejected(self, issuer, user):
        other = SessionTokenIssuer(
            TokenSettings(secret_key="another-key-" + "y" * 64, issuer="http://localhost:5000", expiry_days=7)
        )
        _assert_rejected(issuer.verify(other.issue(user)))

    def test_tampered_claim_rejected(self, issuer, user):
        token = issuer.issue(user)
        header, payload, signature = token.split(".")

        forged_payload = base64url_encode(
            base64url_decode(payload).replace(b"alice@example.com", b"mallory@evil.test")
        ).decode("ascii")

        _assert_rejected(issuer.verify(f"{header}.{forged_payload}.{signature}"))

    def test_wrong_issuer_rejected(self, token_settings, issuer, user):
        foreign = SessionTokenIssuer(
            TokenSettings(
                secret_key=token_settings.secret_key,
                issuer="https://elsewhere.example",
                expiry_days=7,
            )
        )
        _assert_rejected(issuer.verify(foreign.issue(user)))

    def test_missing_claims_rejected(self, token_settings):
        now = isodatetime.now_unix()
        token = pyjwt.encode(
            {"sub": "abc", "iss": token_settings.issuer, "iat": now, "exp": now + 60},
            token_settings.secret_key,
            algorithm="HS512",
        )
        _assert_rejected(SessionTokenIssuer(token_settings).verify(token))

    def test_none_algorithm_rejected(self, issuer):
        _assert_rejected(issuer.verify("eyJhbGciOiJub25lIn0.eyJzdWIiOiIxMjM0NTY3ODkwIn0."))

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "invalid.token.here"])
    def test_malformed_tokens_rejected(self, issuer, token):
        _assert_rejected(issuer.verify(token))

    def test_audience_is_ignored(self, token_settings):
        now = isodatetime.now_unix()
        token = pyjwt.encode(
            {
                "sub": "abc",
                "email": "a@example.com",
                "given_name": "a",
                "surname": "b",
                "iss": token_settings.issuer,
                "aud": "some-other-client",
                "iat": now,
                "exp": now + 60,
            },
            token_settings.secret_key,
            algorithm="HS512",
        )
        claims = SessionTokenIssuer(token_settings).verify(token)
        assert isinstance(claims, SessionClaims)

    def test_rejections_do_not_reveal_cause(self, token_settings, issuer, user):
        long_ago = isodatetime.utcnow() - timedelta(days=30)
        expired = SessionTokenIssuer(token_settings, clock=lambda: long_ago).issue(user)
        forged = SessionTokenIssuer(
            TokenSettings(secret_key="z" * 80, issuer=token_settings.issuer, expiry_days=7)
        ).issue(user)

        assert issuer.verify(expired) == issuer.verify(forged) == issuer.verify("garbage")


# ============================================================================
# Token Introspection Tests
# ============================================================================


class TestIntrospection:
    """Tests for expiry_remaining."""

    def test_expiry_remaining_for_valid_token(self, issuer, user):
        remaining = issuer.expiry_remaining(issuer.issue(user))

        assert remaining is not None
        days = remaining.total_seconds() / (24 * 60 * 60)
        assert 6.99 < days <= 7

    def test_expiry_remaining_for_invalid_token_is_none(self, issuer):
        assert issuer.expiry_remaining("invalid-token") is None
