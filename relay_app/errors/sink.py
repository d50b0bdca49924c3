"""Observability sink for named relay errors."""

import logging
from collections import Counter
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

from .base import ErrorKind, RelayError

LEVELS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REFERRAL: logging.INFO,
    ErrorKind.INVALID_RISK: logging.INFO,
    ErrorKind.NOT_SUBSCRIBED: logging.INFO,
    ErrorKind.MALFORMED_PAYLOAD: logging.WARNING,
    ErrorKind.AUTHENTICATION_FAILURE: logging.WARNING,
    ErrorKind.NOTIFICATION_FAILURE: logging.WARNING,
    ErrorKind.STORE_UNAVAILABLE: logging.ERROR,
}


class ErrorSink:
    """Logs every relay error under its kind and counts occurrences."""

    def __init__(self, logger: Optional[FilteringBoundLogger] = None):
        self.logger = logger or structlog.get_logger("relay.errors")
        self._counts: Counter[ErrorKind] = Counter()

    def record(self, error: RelayError, **context: Any) -> None:
        """Route an error to the log at the level fixed for its kind."""
        self._counts[error.kind] += 1
        fields = {**error.context, **context}
        self.logger.log(
            LEVELS[error.kind],
            error.kind.value,
            error=error.message,
            **fields
        )

    def count(self, kind: ErrorKind) -> int:
        return self._counts[kind]

    def get_stats(self) -> dict[str, int]:
        """Get per-kind error counts, zeros included."""
        return {kind.value: self._counts[kind] for kind in ErrorKind}

    def reset_stats(self) -> None:
        self._counts.clear()
