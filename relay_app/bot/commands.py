"""
Chat command handling.

Commands always produce a reply: a confirmation, a rejection, or a
retry-later notice when the store is unavailable.
"""

import re
from typing import Optional

import structlog

from ..config.defaults import RiskParams
from ..errors import (
    ErrorSink,
    InvalidReferralError,
    InvalidRiskError,
    NotSubscribedError,
    StoreUnavailableError,
)
from ..subscriptions import SubscriptionService, UnsubscribeStatus
from .updates import ChatEvent

logger = structlog.get_logger(__name__)

COMMAND_PATTERN = re.compile(r"^/(?P<name>[A-Za-z_]+)(?:@\w+)?(?P<args>.*)$", re.DOTALL)
REFERRAL_PATTERN = re.compile(r"ref=([A-Za-z0-9_-]+)")


def parse_command(text: str) -> Optional[tuple[str, str]]:
    """Split ``/name@bot args`` into (name, args), or None for plain text."""
    match = COMMAND_PATTERN.match(text.strip())
    if not match:
        return None
    return match.group("name").lower(), match.group("args").strip()


def format_risk(value: float) -> str:
    return f"{value:g}"


class CommandHandler:
    """Answers subscriber commands."""

    def __init__(self, subscriptions: SubscriptionService, risk: RiskParams, sink: ErrorSink):
        self.subscriptions = subscriptions
        self.risk = risk
        self.sink = sink

    @property
    def usage(self) -> str:
        ref = self.subscriptions.primary_referral
        return (
            f"Commands:\n"
            f"/subscribe ref={ref} - receive leader signals\n"
            f"/risk <{format_risk(self.risk.minimum)}-{format_risk(self.risk.maximum)}> "
            f"- set your risk multiplier\n"
            f"/unsubscribe - stop signals and clear pending ones"
        )

    def is_command(self, text: str) -> bool:
        return parse_command(text) is not None

    async def handle(self, event: ChatEvent) -> Optional[str]:
        """
        Run a command and return the reply text.

        Returns None for unknown commands and for plain text.
        """
        parsed = parse_command(event.text)
        if parsed is None:
            return None

        name, args = parsed
        if name == "subscribe":
            return await self._subscribe(event, args)
        if name == "unsubscribe":
            return await self._unsubscribe(event)
        if name == "risk":
            return await self._set_risk(event, args)
        if name in ("start", "help"):
            return self.usage

        logger.debug("Ignoring unknown command", command=name, user_id=event.sender_id)
        return None

    async def _subscribe(self, event: ChatEvent, args: str) -> str:
        match = REFERRAL_PATTERN.search(args)
        referral_code = match.group(1) if match else None

        try:
            await self.subscriptions.subscribe(event.sender_id, referral_code)
        except InvalidReferralError as e:
            self.sink.record(e)
            return "Invalid referral. Join via leader link."
        except StoreUnavailableError as e:
            self.sink.record(e, user_id=event.sender_id, command="subscribe")
            return "Error subscribing, try again later."

        return (f"Subscribed with ref {referral_code}! "
                f"Set risk with /risk {format_risk(self.risk.default)}.")

    async def _unsubscribe(self, event: ChatEvent) -> str:
        try:
            status = await self.subscriptions.unsubscribe(event.sender_id)
        except StoreUnavailableError as e:
            self.sink.record(e, user_id=event.sender_id, command="unsubscribe")
            return "Error unsubscribing, try again later."

        if status is UnsubscribeStatus.NOT_SUBSCRIBED:
            self.sink.record(NotSubscribedError(
                "Unsubscribe without subscription",
                identity=event.sender_id,
                context={"user_id": event.sender_id}
            ))
            return "Not subscribed."
        return "Unsubscribed, signals cleared."

    async def _set_risk(self, event: ChatEvent, args: str) -> str:
        value = args.split()[0] if args else None

        try:
            risk = await self.subscriptions.set_risk(event.sender_id, value)
        except InvalidRiskError as e:
            self.sink.record(e)
            return (f"Risk must be {self.risk.minimum:.1f}-{self.risk.maximum:.1f}. "
                    f"Usage: /risk {format_risk(self.risk.default)}")
        except NotSubscribedError as e:
            self.sink.record(e)
            return f"Subscribe first with /subscribe ref={self.subscriptions.primary_referral}."
        except StoreUnavailableError as e:
            self.sink.record(e, user_id=event.sender_id, command="risk")
            return "Error setting risk, try again later."

        return f"Risk set to {format_risk(risk)}x."
