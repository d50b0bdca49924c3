"""
Data quality error classifications for inbound leader messages.

These errors are dropped at the codec and authenticator boundary: they are
logged, never surfaced to the chat, and never retried.
"""

from typing import Optional

from .base import ErrorKind, RelayError


class DataQualityError(RelayError):
    """Base class for inbound data issues that are handled by dropping."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.recoverable = True


class MalformedPayloadError(DataQualityError):
    """Embedded signal exists but cannot be parsed into a payload."""

    kind = ErrorKind.MALFORMED_PAYLOAD

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format


class AuthenticationFailureError(DataQualityError):
    """Signal signature is missing or does not match the computed tag."""

    kind = ErrorKind.AUTHENTICATION_FAILURE

    def __init__(self, message: str, symbol: Optional[str] = None,
                 reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol
        self.reason = reason
