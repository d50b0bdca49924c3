"""
System failure error classifications.

These represent infrastructure trouble: the store or the chat platform did
not answer. They are scoped to the single call that hit them.
"""

from typing import Optional

from .base import ErrorKind, RelayError


class SystemFailureError(RelayError):
    """Base class for infrastructure failures."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.recoverable = False


class StoreUnavailableError(SystemFailureError):
    """Database failure or timeout."""

    kind = ErrorKind.STORE_UNAVAILABLE

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target


class NotificationFailureError(SystemFailureError):
    """Push notification could not be delivered."""

    kind = ErrorKind.NOTIFICATION_FAILURE

    def __init__(self, message: str, delivery_method: Optional[str] = None,
                 recipient: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.delivery_method = delivery_method
        self.recipient = recipient
