"""Base classes for outbound chat notification."""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog


class DeliveryStatus(Enum):
    """Notification delivery status."""
    SUCCESS = "success"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


@dataclass
class DeliveryResult:
    """Result of a notification attempt."""
    status: DeliveryStatus
    message: Optional[str] = None
    attempt_count: int = 1
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS


class NotificationDeliveryError(Exception):
    """Base exception for notification delivery errors."""
    pass


class NotificationRetryableError(NotificationDeliveryError):
    """Retryable notification delivery error."""
    pass


class NotificationPermanentError(NotificationDeliveryError):
    """Permanent notification delivery error that should not be retried."""
    pass


class BaseNotifier(ABC):
    """Base class for chat notification mechanisms."""

    def __init__(
        self,
        name: str,
        timeout_seconds: float = 10.0,
        retry_attempts: int = 1,
        retry_delay_seconds: float = 0.5
    ):
        self.name = name
        self.timeout_seconds = timeout_seconds
        self.retry_attempts = retry_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self.logger = structlog.get_logger(f"relay.delivery.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    async def send_text(self, chat_id: str, text: str) -> None:
        """
        Send one plain-text message.

        Raises:
            NotificationRetryableError: On transient failures
            NotificationPermanentError: When retrying cannot help
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the notification channel is healthy."""
        pass

    async def close(self) -> None:
        """Release any held connections."""

    async def deliver(self, chat_id: str, text: str) -> DeliveryResult:
        """
        Send a message with per-attempt timeout and bounded retries.

        Never raises for delivery failures; the outcome is in the result.
        """
        attempt = 0
        last_error: Optional[Exception] = None
        start_time = time.monotonic()

        while attempt <= self.retry_attempts:
            try:
                await asyncio.wait_for(self.send_text(chat_id, text), self.timeout_seconds)
                self._delivery_count += 1
                return DeliveryResult(
                    status=DeliveryStatus.SUCCESS,
                    attempt_count=attempt + 1,
                    delivery_time_ms=int((time.monotonic() - start_time) * 1000)
                )

            except NotificationPermanentError as e:
                self._error_count += 1
                return DeliveryResult(
                    status=DeliveryStatus.FAILED,
                    message=f"Permanent error: {str(e)}",
                    attempt_count=attempt + 1,
                    error=e
                )

            except asyncio.TimeoutError as e:
                last_error = NotificationRetryableError(
                    f"Timed out after {self.timeout_seconds}s"
                )
                last_error.__cause__ = e

            except Exception as e:
                # Unknown error - treat as retryable
                last_error = e

            attempt += 1

            if attempt <= self.retry_attempts:
                self.logger.warning(
                    "Notification attempt failed, retrying",
                    delivery_name=self.name,
                    attempt=attempt,
                    retry_delay=self.retry_delay_seconds,
                    error=str(last_error)
                )
                await asyncio.sleep(self.retry_delay_seconds)

        self._error_count += 1
        return DeliveryResult(
            status=DeliveryStatus.DEAD_LETTER,
            message=f"Max retries exceeded: {str(last_error)}",
            attempt_count=attempt,
            error=last_error
        )

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": (
                self._delivery_count / (self._delivery_count + self._error_count)
                if (self._delivery_count + self._error_count) > 0 else 0.0
            )
        }

    def reset_stats(self) -> None:
        """Reset delivery statistics."""
        self._delivery_count = 0
        self._error_count = 0
