"""Account workflows: login, registration, email confirmation, password reset.

AuthWorkflow ties the credential store to the two token components:

- SessionTokenIssuer signs session tokens at login and refresh.
- ActionTokenCodec makes store-issued one-time secrets safe for links.

Per-user state is a one-way machine: Unconfirmed -> Confirmed, triggered
only by consuming a confirmation secret. The password hash can be replaced
any number of times once the email is confirmed.

Every failure is raised as an AuthError subclass (see exceptions.py). At
login, UserNotFound and BadCredentials carry the same message so a caller
cannot tell which accounts exist; the kinds stay distinct in the logs.

Emails are sent after the store has committed. A delivery failure raises
NotificationDeliveryFailed but never undoes the committed change; the user
can ask for a new link.
"""

import logging
from datetime import timedelta
from urllib.parse import urlencode

from jinja2 import Environment

from ..config import LinkSettings, Settings
from ..exceptions import (
    AlreadyConfirmed,
    AuthError,
    BadCredentials,
    DuplicateEmail,
    EmailNotConfirmed,
    InvalidOrExpiredToken,
    InvalidToken,
    MalformedToken,
    NotificationDeliveryFailed,
    Rejection,
    UserNotFound,
    ValidationError,
    ValidationErrors,
)
from ..notify import NotificationSender, OutboundEmail, build_sender
from ..utils import isodatetime
from .codec import ActionTokenCodec
from .schemas import ActionResult, RegisterRequest, SessionClaims, UserCredential, UserSession
from .store import CredentialStore, SqliteCredentialStore
from .token import SessionTokenIssuer

logger = logging.getLogger(__name__)

LOGIN_FAILED = "Incorrect username or password."
INVALID_TOKEN = "Invalid token. Please try again."
SEND_FAILED = "Failed to send email. Please contact admin."


_templates = Environment(autoescape=True)

CONFIRM_EMAIL_HTML = _templates.from_string(
    """<p>Hello: {{ user.first_name }} {{ user.last_name }}</p>
<p>Please confirm your email address by clicking on the following link.</p>
<p><a href="{{ url }}">Click here</a></p>
<p>Thank you,</p>
<br>{{ application_name }}"""
)

RESET_PASSWORD_HTML = _templates.from_string(
    """<p>Hello: {{ user.first_name }} {{ user.last_name }}</p>
<p>Username: {{ user.username }}.</p>
<p>In order to reset your password, please click on the following link:</p>
<p><a href="{{ url }}">Click here</a></p>
<p>Thank you,</p>
<br>{{ application_name }}"""
)


class AuthWorkflow:
    """Orchestrates the account operations on top of a CredentialStore."""

    def __init__(
        self,
        store: CredentialStore,
        sender: NotificationSender,
        issuer: SessionTokenIssuer,
        codec: ActionTokenCodec,
        links: LinkSettings,
    ):
        self.store = store
        self.sender = sender
        self.issuer = issuer
        self.codec = codec
        self.links = links

    # ========================================================================
    # Session tokens
    # ========================================================================

    def login(self, login_name: str, password: str) -> UserSession:
        user = self.store.find_by_login(login_name)
        if user is None:
            logger.warning(f"Login failed ({UserNotFound.kind.value}): {login_name}")
            raise UserNotFound(LOGIN_FAILED)

        if not user.email_confirmed:
            logger.warning(f"Login failed ({EmailNotConfirmed.kind.value}): {login_name}")
            raise EmailNotConfirmed("Please confirm email.")

        if not self.store.check_password(user, password):
            logger.warning(f"Login failed ({BadCredentials.kind.value}): {login_name}")
            raise BadCredentials(LOGIN_FAILED)

        logger.info(f"Successful login: {user.username}")
        return self._session_for(user)

    def refresh(self, claims: SessionClaims) -> UserSession:
        """Issue a fresh session token for an already verified token's owner.

        Tokens minted before the owner's last password change are refused,
        so a reset stops old sessions from being extended.
        """
        user = self.store.find_by_email(claims.email)
        if user is None or user.id != claims.subject_id:
            logger.warning(f"Refresh refused, unknown subject: {claims.subject_id}")
            raise InvalidToken("Invalid or expired token")

        # iat has second precision: a token from the same second as the change is refused too
        changed = user.password_changed_at > user.created_at
        if changed and claims.issued_at < isodatetime.to_unix_ceil(user.password_changed_at):
            logger.warning(f"Refresh refused, token predates password change: {user.username}")
            raise InvalidToken("Invalid or expired token")

        return self._session_for(user)

    def _session_for(self, user: UserCredential) -> UserSession:
        return UserSession(
            first_name=user.first_name,
            last_name=user.last_name,
            session_token=self.issuer.issue(user),
        )

    # ========================================================================
    # Registration and email confirmation
    # ========================================================================

    def register(self, candidate: RegisterRequest) -> ActionResult:
        email = candidate.email.lower()
        if self.store.find_by_email(email) is not None:
            logger.warning(f"Registration refused ({DuplicateEmail.kind.value}): {email}")
            raise DuplicateEmail(
                f"An existing account is using {email}, email address. "
                "Please try with another email address.",
                {"email": email},
            )

        normalized = candidate.model_copy(update={
            "first_name": candidate.first_name.lower(),
            "last_name": candidate.last_name.lower(),
            "email": email,
        })
        user = self.store.create(normalized, candidate.password)
        logger.info(f"Account created: {user.username}")

        self._send_confirmation(user)
        return ActionResult(
            title="Account created.",
            message="Your account has been created, please confirm your email address.",
        )

    def confirm_email(self, email: str, transport_token: str) -> ActionResult:
        user = self._require_user(email, "This email address has not been registered yet.")
        if user.email_confirmed:
            raise AlreadyConfirmed(
                "Your email has already been confirmed. You may log into your account now."
            )

        raw = self._decode(transport_token)
        if not self.store.consume_confirmation_secret(user, raw):
            logger.warning(f"Confirmation refused ({InvalidOrExpiredToken.kind.value}): {user.email}")
            raise InvalidOrExpiredToken(INVALID_TOKEN)

        logger.info(f"Email confirmed: {user.email}")
        return ActionResult(
            title="Email confirmed.",
            message="Your email address is confirmed, you may now log in.",
        )

    def resend_confirmation(self, email: str) -> ActionResult:
        user = self._require_user(email, "This email has not been registered yet.")
        if user.email_confirmed:
            raise AlreadyConfirmed(
                "Your email address has already been confirmed. You may now sign in."
            )

        self._send_confirmation(user)
        return ActionResult(
            title="Confirmation email sent.",
            message="Please confirm your email address.",
        )

    def _send_confirmation(self, user: UserCredential) -> None:
        raw = self.store.generate_confirmation_secret(user)
        url = self._link(self.links.confirm_email_path, raw, user.email)
        self._deliver(
            OutboundEmail(
                to=user.email,
                subject="Confirm your email",
                html_body=CONFIRM_EMAIL_HTML.render(
                    user=user, url=url, application_name=self.links.application_name
                ),
            ),
            SEND_FAILED,
        )

    # ========================================================================
    # Password reset
    # ========================================================================

    def forgot_password(self, email: str) -> ActionResult:
        user = self._require_confirmed_user(email)

        raw = self.store.generate_reset_secret(user)
        url = self._link(self.links.reset_password_path, raw, user.email)
        self._deliver(
            OutboundEmail(
                to=user.email,
                subject="Forgot username or password",
                html_body=RESET_PASSWORD_HTML.render(
                    user=user, url=url, application_name=self.links.application_name
                ),
            ),
            "Failed to send email.",
        )
        return ActionResult(
            title="Forgot username or password email sent.",
            message="Please check email.",
        )

    def reset_password(self, email: str, transport_token: str, new_password: str) -> ActionResult:
        user = self._require_confirmed_user(email)
        raw = self._decode(transport_token, InvalidOrExpiredToken)

        try:
            consumed = self.store.consume_reset_secret(user, raw, new_password)
        except ValidationErrors as e:
            # Rejected before consumption: the link still works with a valid password
            logger.warning(f"Reset refused, password policy: {user.email}")
            raise InvalidOrExpiredToken(INVALID_TOKEN, {"fields": e.fields})

        if not consumed:
            logger.warning(f"Reset refused ({InvalidOrExpiredToken.kind.value}): {user.email}")
            raise InvalidOrExpiredToken(INVALID_TOKEN)

        logger.info(f"Password reset: {user.email}")
        return ActionResult(
            title="Password reset success",
            message="Your password has been reset.",
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def _require_user(self, email: str, not_found_message: str) -> UserCredential:
        if not email or not email.strip():
            raise ValidationError("Invalid Email")

        user = self.store.find_by_email(email.strip())
        if user is None:
            logger.warning(f"Unknown email ({UserNotFound.kind.value}): {email}")
            raise UserNotFound(not_found_message)
        return user

    def _require_confirmed_user(self, email: str) -> UserCredential:
        user = self._require_user(email, "This email address has not been registered.")
        if not user.email_confirmed:
            raise EmailNotConfirmed("Please confirm your email address first.", status_code=400)
        return user

    def _decode(self, transport_token: str, error: type[AuthError] = MalformedToken) -> str:
        raw = self.codec.decode_from_transport(transport_token)
        if isinstance(raw, Rejection):
            logger.warning(f"Action token rejected ({raw.kind.value}): {raw.reason}")
            raise error(INVALID_TOKEN)
        return raw

    def _link(self, path: str, raw_secret: str, email: str) -> str:
        query = urlencode(
            {"token": self.codec.encode_for_transport(raw_secret), "email": email},
            safe="@",
        )
        return f"{self.links.client_url.rstrip('/')}/{path.strip('/')}?{query}"

    def _deliver(self, message: OutboundEmail, failure_message: str) -> None:
        try:
            delivered = self.sender.send(message)
        except Exception:
            logger.exception(f"Notification to {message.to} failed")
            delivered = False

        if not delivered:
            raise NotificationDeliveryFailed(failure_message)


def build_workflow(settings: Settings) -> AuthWorkflow:
    """Wire an AuthWorkflow from application settings."""
    store = SqliteCredentialStore(
        policy=settings.password_policy(),
        token_lifetime=timedelta(hours=settings.action_token_lifetime_hours),
    )
    return AuthWorkflow(
        store=store,
        sender=build_sender(settings),
        issuer=SessionTokenIssuer(settings.token_settings()),
        codec=ActionTokenCodec(max_length=settings.action_token_max_length),
        links=settings.link_settings(),
    )
