"""Signal inbox retrieval and acknowledgment."""

from .service import SignalInbox

__all__ = ["SignalInbox"]
