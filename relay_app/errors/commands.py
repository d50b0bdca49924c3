"""
Command rejection errors.

Raised by subscription operations when a subscriber's request cannot be
honored. Each one is answered with a direct reply and never retried.
"""

from typing import Any, Optional

from .base import ErrorKind, RelayError


class CommandRejectedError(RelayError):
    """Base class for user-facing command rejections."""

    def __init__(self, message: str, identity: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.identity = identity
        self.recoverable = True


class InvalidReferralError(CommandRejectedError):
    """Referral code is missing or not an accepted code."""

    kind = ErrorKind.INVALID_REFERRAL

    def __init__(self, message: str, referral_code: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.referral_code = referral_code


class InvalidRiskError(CommandRejectedError):
    """Risk value is unparseable or outside the allowed range."""

    kind = ErrorKind.INVALID_RISK

    def __init__(self, message: str, value: Any = None,
                 minimum: Optional[float] = None,
                 maximum: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.value = value
        self.minimum = minimum
        self.maximum = maximum


class NotSubscribedError(CommandRejectedError):
    """Operation requires an existing subscription."""

    kind = ErrorKind.NOT_SUBSCRIBED
