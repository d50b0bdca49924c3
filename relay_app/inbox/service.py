"""Per-subscriber signal inbox: poll and acknowledge."""

from typing import Any, Optional

import orjson
import structlog

from ..config.defaults import InboxParams
from ..errors import ErrorSink, MalformedPayloadError
from ..persistence import RelayStore, run_store_call

logger = structlog.get_logger(__name__)


class SignalInbox:
    """Read and acknowledge pending signals, scoped to their owner."""

    def __init__(
        self,
        store: RelayStore,
        params: InboxParams,
        sink: ErrorSink,
        timeout: float = 5.0
    ):
        self.store = store
        self.params = params
        self.sink = sink
        self.timeout = timeout

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.params.default_limit
        return max(1, min(limit, self.params.max_limit))

    async def list_pending(self, identity: str, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """
        Newest pending signals for a subscriber, newest first.

        Raises:
            StoreUnavailableError: If the store cannot be read
        """
        entries = await run_store_call(self.store.list_signals, identity,
                                       self._clamp_limit(limit), timeout=self.timeout)

        signals = []
        for entry in entries:
            try:
                signals.append(orjson.loads(entry.signal))
            except orjson.JSONDecodeError as e:
                self.sink.record(MalformedPayloadError(
                    f"Stored signal is not valid JSON: {e}",
                    raw_data=entry.signal[:200],
                    context={"user_id": identity, "signal_id": entry.signal_id}
                ))

        return signals

    async def acknowledge(self, identity: str, signal_id: str) -> bool:
        """
        Delete a signal owned by ``identity``.

        Unknown or already acknowledged ids succeed without effect.

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        removed = await run_store_call(self.store.delete_signal, signal_id, identity,
                                       timeout=self.timeout)
        logger.info("Signal acknowledged", user_id=identity, signal_id=signal_id, removed=removed)
        return True
