"""Subscription management."""

from .service import SubscriptionService, UnsubscribeStatus, parse_risk

__all__ = ["SubscriptionService", "UnsubscribeStatus", "parse_risk"]
