"""Root of the relay error hierarchy and the error kinds it is routed by."""

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Named error kinds understood by the error sink."""
    INVALID_REFERRAL = "invalid_referral"
    INVALID_RISK = "invalid_risk"
    NOT_SUBSCRIBED = "not_subscribed"
    MALFORMED_PAYLOAD = "malformed_payload"
    AUTHENTICATION_FAILURE = "authentication_failure"
    STORE_UNAVAILABLE = "store_unavailable"
    NOTIFICATION_FAILURE = "notification_failure"


class RelayError(Exception):
    """Base class for every error the relay names."""

    kind: ErrorKind

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
