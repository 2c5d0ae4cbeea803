"""Transport encoding for one-time secrets.

Secrets produced by the credential store are standard base64 and may hold
'+', '/' and '=', which do not survive a query string. Links therefore
carry the secret's UTF-8 bytes as unpadded base64url. The codec knows
nothing about who a secret belongs to or what it is for.
"""

import base64
import binascii
import re

from ..exceptions import AuthErrorKind, Rejection

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+$")


class ActionTokenCodec:
    """Encodes secrets for links and decodes them back."""

    def __init__(self, max_length: int = 1024):
        self._max_length = max_length

    def encode_for_transport(self, raw: str | bytes) -> str:
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    def decode_from_transport(self, value: str) -> str | Rejection:
        if not value or len(value) > self._max_length:
            return Rejection(AuthErrorKind.MALFORMED_TOKEN, "bad length")
        if not _BASE64URL.match(value) or len(value) % 4 == 1:
            return Rejection(AuthErrorKind.MALFORMED_TOKEN, "not base64url")

        padded = value + "=" * (-len(value) % 4)
        try:
            raw = base64.b64decode(padded, altchars=b"-_", validate=True)
            return raw.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return Rejection(AuthErrorKind.MALFORMED_TOKEN, "undecodable")
