"""
Error classification for the signal relay.

Every error the relay raises carries an ErrorKind so it can be routed to the
ErrorSink instead of bubbling into a generic handler.
"""

from .base import ErrorKind, RelayError
from .commands import (
    CommandRejectedError,
    InvalidReferralError,
    InvalidRiskError,
    NotSubscribedError,
)
from .data_quality import (
    DataQualityError,
    MalformedPayloadError,
    AuthenticationFailureError,
)
from .system_failures import (
    SystemFailureError,
    StoreUnavailableError,
    NotificationFailureError,
)
from .sink import ErrorSink

__all__ = [
    "ErrorKind",
    "RelayError",
    "ErrorSink",
    # Command rejections
    "CommandRejectedError",
    "InvalidReferralError",
    "InvalidRiskError",
    "NotSubscribedError",
    # Data quality
    "DataQualityError",
    "MalformedPayloadError",
    "AuthenticationFailureError",
    # System failures
    "SystemFailureError",
    "StoreUnavailableError",
    "NotificationFailureError",
]
