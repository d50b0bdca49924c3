"""
Keyed-hash authentication of leader signals.

Canonical form: compact JSON (no whitespace) of an object holding exactly
``symbol, side, size, price, leverage`` in that order, values as posted,
UTF-8 encoded. The tag is the lowercase hex HMAC-SHA-256 of those bytes,
cut to the first ``signature_length`` characters. The leader's signer must
produce the same bytes or valid signals will be rejected.
"""

import hashlib
import hmac

import orjson

from ..errors import AuthenticationFailureError
from ..logging.config import get_auth_logger, log_auth_decision
from .models import SignalPayload

auth_logger = get_auth_logger(__name__)


def canonicalize(payload: SignalPayload) -> bytes:
    """Serialize the signed fields in canonical form."""
    return orjson.dumps(payload.signed_fields())


class SignalAuthenticator:
    """Verifies that a payload was signed with the shared secret."""

    def __init__(self, secret: str, signature_length: int = 16):
        if not secret:
            raise ValueError("Signing secret must not be empty")
        self._key = secret.encode("utf-8")
        self.signature_length = signature_length

    def sign(self, payload: SignalPayload) -> str:
        """Compute the truncated hex tag for a payload."""
        digest = hmac.new(self._key, canonicalize(payload), hashlib.sha256).hexdigest()
        return digest[:self.signature_length]

    def verify(self, payload: SignalPayload) -> bool:
        """True iff the declared signature equals the computed tag."""
        if not payload.signature:
            return False
        return hmac.compare_digest(
            payload.signature.encode("utf-8"),
            self.sign(payload).encode("utf-8")
        )

    def authenticate(self, payload: SignalPayload) -> SignalPayload:
        """
        Return the payload if authentic.

        Raises:
            AuthenticationFailureError: If the signature is missing or wrong
        """
        if not payload.signature:
            reason = "missing signature"
        elif not self.verify(payload):
            reason = "signature mismatch"
        else:
            log_auth_decision(auth_logger, True, payload.symbol, "signature match")
            return payload

        log_auth_decision(auth_logger, False, payload.symbol, reason)
        raise AuthenticationFailureError(
            f"Signal rejected: {reason}",
            symbol=payload.symbol,
            reason=reason,
            context={"symbol": payload.symbol, "reason": reason}
        )
