"""Credential store: user records, password checks and one-time secrets.

AuthWorkflow only depends on the CredentialStore protocol.
SqliteCredentialStore is the implementation used by the application; it
opens one Core per call, so it is safe to share between request threads.

Consuming a secret and applying its effect run in one atomic Core:

- consume_confirmation_secret: token consumed + email_confirmed = 1
- consume_reset_secret: token consumed + password hash replaced

Either both writes commit or neither does.
"""

import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timedelta
from typing import Callable, Protocol

from ..config import PasswordPolicy
from ..db import get_core
from ..db.action_token import PURPOSE_CONFIRM_EMAIL, PURPOSE_RESET_PASSWORD
from ..exceptions import ValidationErrors
from ..utils import isodatetime, secret
from . import service
from .schemas import RegisterRequest, UserCredential

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Operations the auth workflow needs from user storage."""

    def find_by_login(self, login_name: str) -> UserCredential | None: ...

    def find_by_email(self, email: str) -> UserCredential | None: ...

    def find_by_id(self, user_id: str) -> UserCredential | None: ...

    def create(self, candidate: RegisterRequest, password: str) -> UserCredential:
        """Persist a new unconfirmed user.

        Raises:
            ValidationErrors: Password policy violation or uniqueness conflict
        """
        ...

    def check_password(self, user: UserCredential, password: str) -> bool: ...

    def generate_confirmation_secret(self, user: UserCredential) -> str: ...

    def consume_confirmation_secret(self, user: UserCredential, raw_secret: str) -> bool: ...

    def generate_reset_secret(self, user: UserCredential) -> str: ...

    def consume_reset_secret(
        self, user: UserCredential, raw_secret: str, new_password: str
    ) -> bool:
        """Consume a reset secret and replace the password hash.

        Raises:
            ValidationErrors: New password violates the policy (secret stays live)
        """
        ...


class SqliteCredentialStore:
    """CredentialStore backed by the SQLite database in settings."""

    def __init__(
        self,
        policy: PasswordPolicy,
        token_lifetime: timedelta,
        clock: Callable[[], datetime] = isodatetime.utcnow,
    ):
        self._policy = policy
        self._token_lifetime = token_lifetime
        self._clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_login(self, login_name: str) -> UserCredential | None:
        with closing(get_core()) as core:
            row = core.user.get_by_username(login_name)
        return service.row_to_user(row) if row else None

    def find_by_email(self, email: str) -> UserCredential | None:
        with closing(get_core()) as core:
            row = core.user.get_by_email(email)
        return service.row_to_user(row) if row else None

    def find_by_id(self, user_id: str) -> UserCredential | None:
        with closing(get_core()) as core:
            row = core.user.get_by_id(user_id)
        return service.row_to_user(row) if row else None

    # ------------------------------------------------------------------
    # Users and passwords
    # ------------------------------------------------------------------

    def create(self, candidate: RegisterRequest, password: str) -> UserCredential:
        self._enforce_policy(password)
        password_hash = service.hash_password(password)

        try:
            with get_core(atomic=True) as core:
                user_id = core.user.create(
                    username=candidate.email,
                    email=candidate.email,
                    password_hash=password_hash,
                    first_name=candidate.first_name,
                    last_name=candidate.last_name,
                )
                row = core.user.get_by_id(user_id)
        except sqlite3.IntegrityError as e:
            field = "username" if "users.username" in str(e) else "email"
            logger.warning(f"User creation conflict on {field}: {candidate.email}")
            raise ValidationErrors({field: [f"{candidate.email} is already taken"]})

        return service.row_to_user(row)

    def check_password(self, user: UserCredential, password: str) -> bool:
        with closing(get_core()) as core:
            row = core.user.get_by_id(user.id)
        if row is None:
            return False
        return service.verify_password(password, row["password_hash"])

    def _enforce_policy(self, password: str) -> None:
        problems = service.check_password_policy(password, self._policy)
        if problems:
            raise ValidationErrors({"password": problems})

    # ------------------------------------------------------------------
    # One-time secrets
    # ------------------------------------------------------------------

    def _generate(self, user: UserCredential, purpose: str) -> str:
        raw = secret.generate_secret()
        with get_core(atomic=True) as core:
            core.action_token.issue(
                user.id,
                purpose,
                secret.fingerprint(raw),
                lifetime=self._token_lifetime,
                now=self._clock(),
            )
        return raw

    def generate_confirmation_secret(self, user: UserCredential) -> str:
        return self._generate(user, PURPOSE_CONFIRM_EMAIL)

    def generate_reset_secret(self, user: UserCredential) -> str:
        return self._generate(user, PURPOSE_RESET_PASSWORD)

    def consume_confirmation_secret(self, user: UserCredential, raw_secret: str) -> bool:
        with get_core(atomic=True) as core:
            consumed = core.action_token.consume(
                user.id, PURPOSE_CONFIRM_EMAIL, secret.fingerprint(raw_secret), now=self._clock()
            )
            if consumed:
                core.user.set_email_confirmed(user.id)
        return consumed

    def consume_reset_secret(
        self, user: UserCredential, raw_secret: str, new_password: str
    ) -> bool:
        self._enforce_policy(new_password)
        # Hash outside the write lock
        password_hash = service.hash_password(new_password)

        with get_core(atomic=True) as core:
            consumed = core.action_token.consume(
                user.id, PURPOSE_RESET_PASSWORD, secret.fingerprint(raw_secret), now=self._clock()
            )
            if consumed:
                core.user.set_password_hash(user.id, password_hash)
        return consumed
