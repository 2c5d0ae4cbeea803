"""Shared test fixtures for account-core."""

import html
import os
import re
import tempfile
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

# Settings are read at import time; keep the app's default database out of
# the working tree and keep bcrypt fast.
os.environ.setdefault("DATABASE_PATH", os.path.join(tempfile.gettempdir(), "account_core_test.db"))
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")

import pytest

from account_core.auth.codec import ActionTokenCodec
from account_core.auth.schemas import RegisterRequest
from account_core.auth.store import SqliteCredentialStore
from account_core.auth.token import SessionTokenIssuer
from account_core.auth.workflow import AuthWorkflow
from account_core.config import LinkSettings, PasswordPolicy, TokenSettings, settings
from account_core.db import init_db
from account_core.main import app

TEST_SECRET_KEY = "test-secret-key-" + "x" * 64
TEST_ISSUER = "http://localhost:5000"
CLIENT_URL = "http://localhost:4200"


class RecordingSender:
    """NotificationSender that keeps messages in memory."""

    def __init__(self):
        self.sent = []
        self.fail_with: Exception | None = None
        self.refuse = False

    def send(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        if self.refuse:
            return False
        self.sent.append(message)
        return True

    @property
    def last(self):
        return self.sent[-1]


def link_params(message) -> dict[str, str]:
    """Pull the query parameters out of the link in an emailed message."""
    match = re.search(r'href="([^"]+)"', message.html_body)
    assert match is not None, "message has no link"
    url = html.unescape(match.group(1))
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


@pytest.fixture
def db_path():
    """Point settings at a fresh temp-file database with schema applied."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    os.unlink(path)

    original_db_path = settings.database_path
    settings.database_path = path
    try:
        init_db()
        yield path
    finally:
        settings.database_path = original_db_path
        for suffix in ("", "-journal", "-wal", "-shm"):
            try:
                os.unlink(path + suffix)
            except FileNotFoundError:
                pass


@pytest.fixture
def token_settings():
    return TokenSettings(secret_key=TEST_SECRET_KEY, issuer=TEST_ISSUER, expiry_days=7)


@pytest.fixture
def issuer(token_settings):
    return SessionTokenIssuer(token_settings)


@pytest.fixture
def codec():
    return ActionTokenCodec(max_length=1024)


@pytest.fixture
def links():
    return LinkSettings(
        client_url=CLIENT_URL,
        confirm_email_path="account/confirm-email",
        reset_password_path="account/reset-password",
        application_name="Account Core",
    )


@pytest.fixture
def policy():
    return PasswordPolicy(min_length=6)


@pytest.fixture
def store(db_path, policy):
    return SqliteCredentialStore(policy=policy, token_lifetime=timedelta(hours=24))


@pytest.fixture
def outbox():
    return RecordingSender()


@pytest.fixture
def workflow(store, outbox, issuer, codec, links):
    return AuthWorkflow(store=store, sender=outbox, issuer=issuer, codec=codec, links=links)


@pytest.fixture
def alice():
    return RegisterRequest(
        first_name="Alice",
        last_name="Smith",
        email="alice@example.com",
        password="secret1",
    )


@pytest.fixture
def confirmed_alice(workflow, outbox, alice):
    """Register and confirm alice; returns her stored UserCredential."""
    workflow.register(alice)
    params = link_params(outbox.last)
    workflow.confirm_email(params["email"], params["token"])
    return workflow.store.find_by_email("alice@example.com")


@pytest.fixture
def client(workflow):
    """Flask test client wired to the test workflow."""
    original = app.extensions["auth_workflow"]
    app.extensions["auth_workflow"] = workflow
    app.config["TESTING"] = True
    try:
        with app.test_client() as client:
            yield client
    finally:
        app.extensions["auth_workflow"] = original


@pytest.fixture
def read_link():
    """Function returning the query parameters of a message's link."""
    return link_params
