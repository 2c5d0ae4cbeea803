"""Utility functions for Account Core.

This package provides centralized utilities for common operations.
Import convention: use module-level imports for clarity.

    from account_core.utils import isodatetime, uid, secret
    timestamp = isodatetime.now()
    user_id = uid.generate_uuid()
    raw = secret.generate_secret()
"""

from . import isodatetime, secret, uid

__all__ = ["isodatetime", "secret", "uid"]
