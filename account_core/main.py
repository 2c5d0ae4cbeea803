"""Flask application entry point."""

import logging
from flask import Flask, jsonify
from flask_cors import CORS

from .auth.api import account_bp
from .auth.workflow import build_workflow
from .config import settings
from .db import init_db
from .exceptions import (
    AccountCoreError,
    AuthenticationError,
    AuthError,
    ResourceNotFound,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Public error types for auth failures; the internal kind is only logged
STATUS_TYPES = {400: "BadRequest", 401: "Unauthorized"}


# Create Flask app
app = Flask(__name__)

# CORS configuration
CORS(app, origins=settings.cors_origins, supports_credentials=True)


# Database initialization (runs once on app startup)
def initialize_database():
    """Initialize database on app startup."""
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


with app.app_context():
    initialize_database()

app.extensions["auth_workflow"] = build_workflow(settings)


def _error_response(error_type: str, error: AccountCoreError, status: int):
    response = {
        "error": {
            "type": error_type,
            "message": error.message
        }
    }
    if error.details:
        response["error"]["details"] = error.details
    return jsonify(response), status


# Error handlers
@app.errorhandler(AuthError)
def handle_auth_error(error):
    """Handle auth workflow failures without revealing the internal kind."""
    logger.warning(f"Auth failure: {error.kind.value} ({error.status_code})")
    error_type = STATUS_TYPES.get(error.status_code, "BadRequest")
    return _error_response(error_type, error, error.status_code)


@app.errorhandler(AuthenticationError)
def handle_authentication_error(error):
    """Handle AuthenticationError exceptions."""
    return _error_response("Unauthorized", error, 401)


@app.errorhandler(ResourceNotFound)
def handle_not_found(error):
    """Handle ResourceNotFound exceptions."""
    return _error_response("ResourceNotFound", error, 404)


@app.errorhandler(ValidationError)
def handle_validation_error(error):
    """Handle ValidationError exceptions."""
    return _error_response("ValidationError", error, 400)


@app.errorhandler(AccountCoreError)
def handle_account_core_error(error):
    """Handle generic AccountCoreError exceptions."""
    return _error_response(error.__class__.__name__, error, 500)


@app.errorhandler(500)
def handle_internal_error(error):
    """Handle internal server errors."""
    logger.error(f"Internal error: {error}")
    return jsonify({
        "error": {
            "type": "InternalServerError",
            "message": "An internal error occurred"
        }
    }), 500


# Health check endpoint
@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


# Register account blueprint
app.register_blueprint(account_bp, url_prefix=settings.api_prefix)


if __name__ == "__main__":
    app.run(debug=True)
