"""
Fan-out of authenticated signals to every active subscriber.

Each broadcast snapshots the subscriber set once, then runs one independent
task per recipient: persist the inbox entry, then push a notification. A
failing recipient never cancels or blocks its siblings, and a failed
notification never removes the persisted entry.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Optional

import orjson

from ..config.defaults import NotificationParams, ReferralParams
from ..delivery import BaseNotifier
from ..errors import (
    ErrorSink,
    NotificationFailureError,
    RelayError,
    StoreUnavailableError,
)
from ..logging.config import get_broadcast_logger, log_broadcast_summary
from ..persistence import RelayStore, run_store_call
from ..signals.models import SignalPayload

broadcast_logger = get_broadcast_logger(__name__)


@dataclass
class RecipientOutcome:
    """What happened for one subscriber in a broadcast."""
    user_id: str
    persisted: bool = False
    notified: bool = False
    skipped: bool = False
    error: Optional[str] = None


@dataclass
class BroadcastReport:
    """Summary of one fan-out broadcast."""
    signal_id: str
    symbol: str
    outcomes: list[RecipientOutcome] = field(default_factory=list)
    snapshot_failed: bool = False

    @property
    def recipient_count(self) -> int:
        return len(self.outcomes)

    @property
    def persisted_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.persisted)

    @property
    def skipped_count(self) -> int:
        """Recipients that unsubscribed between snapshot and write."""
        return sum(1 for outcome in self.outcomes if outcome.skipped)

    @property
    def notified_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.notified)

    @property
    def failures(self) -> list[RecipientOutcome]:
        return [outcome for outcome in self.outcomes if outcome.error]


class SignalBroadcaster:
    """Materializes one inbox entry per subscriber and notifies each."""

    def __init__(
        self,
        store: RelayStore,
        notifier: BaseNotifier,
        sink: ErrorSink,
        referral: ReferralParams,
        notification: NotificationParams,
        store_timeout: float = 5.0
    ):
        self.store = store
        self.notifier = notifier
        self.sink = sink
        self.referral = referral
        self.message_prefix = notification.message_prefix
        self.max_concurrency = notification.max_concurrency
        self.store_timeout = store_timeout

    async def broadcast(self, payload: SignalPayload) -> BroadcastReport:
        """Deliver an authenticated signal to the current subscriber snapshot."""
        signal_id = str(uuid.uuid4())
        report = BroadcastReport(signal_id=signal_id, symbol=payload.symbol)

        try:
            subscribers = await run_store_call(
                self.store.list_subscribers, self.referral.accepted_codes,
                timeout=self.store_timeout
            )
        except StoreUnavailableError as e:
            self.sink.record(e, signal_id=signal_id, stage="snapshot")
            report.snapshot_failed = True
            return report

        record = orjson.dumps(payload.to_record(signal_id)).decode("utf-8")
        message = self.message_prefix + orjson.dumps(payload.to_dict()).decode("utf-8")
        persist_slots = asyncio.Semaphore(self.max_concurrency)
        notify_slots = asyncio.Semaphore(self.max_concurrency)

        user_ids = [subscriber.user_id for subscriber in subscribers]
        tasks = [
            asyncio.create_task(
                self._deliver(persist_slots, notify_slots, signal_id, user_id, record, message)
            )
            for user_id in user_ids
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for user_id, result in zip(user_ids, results):
            if isinstance(result, BaseException):
                broadcast_logger.error(
                    "Recipient task crashed",
                    signal_id=signal_id,
                    user_id=user_id,
                    error=repr(result)
                )
                result = RecipientOutcome(user_id=user_id, error=repr(result))
            report.outcomes.append(result)

        log_broadcast_summary(
            broadcast_logger,
            signal_id=signal_id,
            symbol=payload.symbol,
            recipients=report.recipient_count - report.skipped_count,
            persisted=report.persisted_count,
            notified=report.notified_count,
            context={"skipped": report.skipped_count} if report.skipped_count else None,
        )
        return report

    async def _deliver(
        self,
        persist_slots: asyncio.Semaphore,
        notify_slots: asyncio.Semaphore,
        signal_id: str,
        user_id: str,
        record: str,
        message: str
    ) -> RecipientOutcome:
        """
        Persist then notify for a single recipient.

        Store writes and notifications draw on separate slot pools, so a slow
        push never holds back the inbox write of another recipient.
        """
        outcome = RecipientOutcome(user_id=user_id)

        async with persist_slots:
            try:
                written = await run_store_call(self.store.insert_signal, signal_id, user_id,
                                               record, timeout=self.store_timeout)
            except RelayError as e:
                self.sink.record(e, signal_id=signal_id, user_id=user_id, stage="persist")
                outcome.error = e.message
                return outcome

        if not written:
            # Unsubscribed after the snapshot was taken
            broadcast_logger.info("Recipient left before delivery",
                                  signal_id=signal_id, user_id=user_id)
            outcome.skipped = True
            return outcome
        outcome.persisted = True

        async with notify_slots:
            result = await self.notifier.deliver(user_id, message)
            if result.ok:
                outcome.notified = True
            else:
                failure = NotificationFailureError(
                    result.message or "Notification failed",
                    delivery_method=self.notifier.name,
                    recipient=user_id
                )
                self.sink.record(failure, signal_id=signal_id, user_id=user_id,
                                 attempts=result.attempt_count)
                outcome.error = failure.message

        return outcome
