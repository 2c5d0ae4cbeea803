"""Account API endpoints for Account Core.

These endpoints are a thin HTTP layer over AuthWorkflow:
- POST /login                       - Authenticate and return a session token
- POST /register                    - Create an account and email a confirmation link
- PUT  /confirm-email               - Confirm an email address with the emailed token
- POST /resend-confirmation/<email> - Email a fresh confirmation link
- POST /forgot-password/<email>     - Email a password reset link
- PUT  /reset-password              - Set a new password with the emailed token
- GET  /refresh-token               - Exchange a valid session token for a new one

All endpoints return JSON. Failures are raised as AuthError subclasses and
rendered by the error handlers in main.py.
"""

from flask import Blueprint, g, jsonify

from ..api.validation import validate_request
from .decorators import auth_required, get_workflow
from .schemas import ConfirmEmailRequest, LoginRequest, RegisterRequest, ResetPasswordRequest

# Create blueprint
account_bp = Blueprint("account", __name__)


def _camel(model):
    return jsonify(model.model_dump(by_alias=True))


# ============================================================================
# Session Endpoints
# ============================================================================


@account_bp.post("/login")
@validate_request
def login(data: LoginRequest):
    """
    Authenticate a confirmed user.

    Example request:
    ```json
    {"loginName": "alice@example.com", "password": "secret1"}
    ```

    Example response:
    ```json
    {"firstName": "alice", "lastName": "smith", "sessionToken": "eyJhbGciOiJIUzUxMiIs..."}
    ```
    """
    session = get_workflow().login(data.login_name, data.password)
    return _camel(session), 200


@account_bp.get("/refresh-token")
@auth_required
def refresh_token():
    """Issue a new session token for the bearer of a valid one."""
    session = get_workflow().refresh(g.claims)
    return _camel(session), 200


# ============================================================================
# Registration and Confirmation
# ============================================================================


@account_bp.post("/register")
@validate_request
def register(data: RegisterRequest):
    """
    Create an unconfirmed account and email a confirmation link.

    Example request:
    ```json
    {"firstName": "Alice", "lastName": "Smith", "email": "alice@example.com", "password": "secret1"}
    ```

    Example response:
    ```json
    {"title": "Account created.", "message": "Your account has been created, please confirm your email address."}
    ```
    """
    return _camel(get_workflow().register(data)), 200


@account_bp.put("/confirm-email")
@validate_request
def confirm_email(data: ConfirmEmailRequest):
    return _camel(get_workflow().confirm_email(data.email, data.token)), 200


@account_bp.post("/resend-confirmation/<email>")
def resend_confirmation(email: str):
    return _camel(get_workflow().resend_confirmation(email)), 200


# ============================================================================
# Password Reset
# ============================================================================


@account_bp.post("/forgot-password/<email>")
def forgot_password(email: str):
    return _camel(get_workflow().forgot_password(email)), 200


@account_bp.put("/reset-password")
@validate_request
def reset_password(data: ResetPasswordRequest):
    result = get_workflow().reset_password(data.email, data.token, data.new_password)
    return _camel(result), 200
