"""
Main relay coordinator.

Builds every service once from a RelayConfig and routes chat events through
them:

Leader alert → Codec → Authenticator → Broadcaster → Inbox
Subscriber command → CommandHandler → SubscriptionService
"""

from collections import OrderedDict
from typing import Any, Optional

import structlog

from .bot import ChatEvent, CommandHandler, parse_update
from .broadcast import BroadcastReport, SignalBroadcaster
from .config.defaults import RelayConfig
from .delivery import BaseNotifier, create_notifier
from .errors import (
    AuthenticationFailureError,
    ErrorSink,
    MalformedPayloadError,
    NotificationFailureError,
)
from .inbox import SignalInbox
from .persistence import RelayStore
from .signals import SignalAuthenticator, SignalCodec
from .subscriptions import SubscriptionService

logger = structlog.get_logger(__name__)


class RelayEngine:
    """
    Owns the relay's services and the routing between them.

    Constructed once at process start and handed to the HTTP layer; nothing
    is kept in module state.
    """

    def __init__(
        self,
        config: RelayConfig,
        store: Optional[RelayStore] = None,
        notifier: Optional[BaseNotifier] = None,
        sink: Optional[ErrorSink] = None
    ) -> None:
        self.config = config
        self.sink = sink or ErrorSink()
        self.store = store or RelayStore(config.store.db_path)
        self.notifier = notifier or create_notifier(config.notification)

        store_timeout = config.store.timeout_seconds

        self.codec = SignalCodec(config.leader.username, config.leader.marker_phrase)
        self.authenticator = SignalAuthenticator(
            config.auth.secret, config.auth.signature_length
        )
        self.subscriptions = SubscriptionService(
            self.store, config.referral, config.risk, timeout=store_timeout
        )
        self.inbox = SignalInbox(self.store, config.inbox, self.sink, timeout=store_timeout)
        self.broadcaster = SignalBroadcaster(
            self.store,
            self.notifier,
            self.sink,
            config.referral,
            config.notification,
            store_timeout=store_timeout,
        )
        self.commands = CommandHandler(self.subscriptions, config.risk, self.sink)
        self._recent_updates: OrderedDict[int, None] = OrderedDict()

        logger.info(
            "Relay engine initialized",
            leader=config.leader.username,
            notifier=self.notifier.name,
            db_path=str(self.store.db_path),
        )

    async def process_message(self, event: ChatEvent) -> Optional[BroadcastReport]:
        """
        Run a chat message through the leader signal pipeline.

        Malformed and forged signals are dropped here; nothing is sent back
        to the originating chat.
        """
        try:
            payload = self.codec.decode(event.text, event.sender_username)
            if payload is None:
                return None

            self.authenticator.authenticate(payload)

        except (MalformedPayloadError, AuthenticationFailureError) as e:
            self.sink.record(e, sender=event.sender_username)
            return None

        return await self.broadcaster.broadcast(payload)

    async def handle_event(self, event: ChatEvent) -> Optional[str]:
        """
        Dispatch one chat event.

        Commands are answered in the originating chat; any other text goes
        to the leader pipeline.

        Returns:
            The reply sent, if any
        """
        if not self.commands.is_command(event.text):
            await self.process_message(event)
            return None

        reply = await self.commands.handle(event)
        if reply is not None:
            result = await self.notifier.deliver(event.reply_to, reply)
            if not result.ok:
                self.sink.record(NotificationFailureError(
                    result.message or "Reply not delivered",
                    delivery_method=self.notifier.name,
                    recipient=event.reply_to
                ), user_id=event.sender_id, stage="reply")
        return reply

    def _is_redelivery(self, update: Any) -> bool:
        """Remember an update id; True if it was already seen."""
        update_id = update.get("update_id") if isinstance(update, dict) else None
        if not isinstance(update_id, int):
            return False

        if update_id in self._recent_updates:
            self._recent_updates.move_to_end(update_id)
            return True

        self._recent_updates[update_id] = None
        while len(self._recent_updates) > self.config.webhook.recent_updates:
            self._recent_updates.popitem(last=False)
        return False

    async def handle_update(self, update: Any) -> Optional[str]:
        """
        Dispatch a raw Telegram update.

        Telegram retries a webhook delivery it considers failed, so an update
        id seen recently is ignored rather than broadcast a second time.
        """
        if self._is_redelivery(update):
            logger.info("Ignoring redelivered update", update_id=update["update_id"])
            return None

        event = parse_update(update)
        if event is None:
            logger.debug("Ignoring update without text message")
            return None
        return await self.handle_event(event)

    def get_stats(self) -> dict[str, Any]:
        """Error counts and notifier statistics."""
        return {
            "errors": self.sink.get_stats(),
            "delivery": self.notifier.get_stats(),
        }

    async def close(self) -> None:
        await self.notifier.close()
        logger.info("Relay engine closed")
