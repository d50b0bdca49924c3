"""Signal fan-out broadcasting."""

from .broadcaster import BroadcastReport, RecipientOutcome, SignalBroadcaster

__all__ = ["BroadcastReport", "RecipientOutcome", "SignalBroadcaster"]
