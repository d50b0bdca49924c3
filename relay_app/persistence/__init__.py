"""Persistence layer for subscribers and signal inboxes."""

from .executor import run_store_call
from .store import InboxEntry, RelayStore, SubscriberRecord

__all__ = ["InboxEntry", "RelayStore", "SubscriberRecord", "run_store_call"]
