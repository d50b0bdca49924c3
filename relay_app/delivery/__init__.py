"""Outbound chat notification."""

from ..config.defaults import NotificationParams
from .base import (
    BaseNotifier,
    DeliveryResult,
    DeliveryStatus,
    NotificationDeliveryError,
    NotificationPermanentError,
    NotificationRetryableError,
)
from .stdout_delivery import StdoutNotifier
from .telegram_delivery import TelegramNotifier


def create_notifier(params: NotificationParams) -> BaseNotifier:
    """Build the notifier selected by ``params.method``."""
    common = {
        "timeout_seconds": params.timeout_seconds,
        "retry_attempts": params.retry_attempts,
        "retry_delay_seconds": params.retry_delay_seconds,
    }

    if params.method == "telegram":
        return TelegramNotifier(params.bot_token, api_base_url=params.api_base_url, **common)
    if params.method == "stdout":
        return StdoutNotifier(**common)

    raise ValueError(f"Unsupported notification method: {params.method}")


__all__ = [
    "BaseNotifier",
    "DeliveryResult",
    "DeliveryStatus",
    "NotificationDeliveryError",
    "NotificationPermanentError",
    "NotificationRetryableError",
    "StdoutNotifier",
    "TelegramNotifier",
    "create_notifier",
]
