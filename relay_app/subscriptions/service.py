"""Subscriber lifecycle: subscribe, unsubscribe, risk multiplier."""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

import structlog

from ..config.defaults import ReferralParams, RiskParams
from ..errors import InvalidReferralError, InvalidRiskError, NotSubscribedError
from ..persistence import RelayStore, run_store_call

logger = structlog.get_logger(__name__)


class UnsubscribeStatus(Enum):
    """Outcome of an unsubscribe request."""
    UNSUBSCRIBED = "unsubscribed"
    NOT_SUBSCRIBED = "not_subscribed"


def parse_risk(value: Any, params: RiskParams) -> float:
    """
    Parse and range-check a risk multiplier.

    Raises:
        InvalidRiskError: If the value is not a finite number in range
    """
    if value is None or isinstance(value, bool):
        raise InvalidRiskError("Risk value is required",
                               value=value, minimum=params.minimum, maximum=params.maximum)

    try:
        risk = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidRiskError(f"Unparseable risk value: {value!r}",
                               value=value, minimum=params.minimum,
                               maximum=params.maximum) from e

    if not risk.is_finite():
        raise InvalidRiskError(f"Risk value must be finite: {value!r}",
                               value=value, minimum=params.minimum, maximum=params.maximum)

    if not Decimal(str(params.minimum)) <= risk <= Decimal(str(params.maximum)):
        raise InvalidRiskError(
            f"Risk must be between {params.minimum} and {params.maximum}",
            value=value, minimum=params.minimum, maximum=params.maximum
        )

    return float(risk)


class SubscriptionService:
    """Owns subscriber records in the store."""

    def __init__(
        self,
        store: RelayStore,
        referral: ReferralParams,
        risk: RiskParams,
        timeout: float = 5.0
    ):
        self.store = store
        self.referral = referral
        self.risk = risk
        self.timeout = timeout

    @property
    def primary_referral(self) -> str:
        """Referral code quoted in user-facing hints."""
        return self.referral.accepted_codes[0]

    async def subscribe(self, identity: str, referral_code: Optional[str]) -> float:
        """
        Subscribe with an accepted referral code, resetting risk to the default.

        Returns:
            The risk multiplier now in effect

        Raises:
            InvalidReferralError: If the code is not accepted
            StoreUnavailableError: If the store cannot be written
        """
        if referral_code not in self.referral.accepted_codes:
            raise InvalidReferralError(
                "Invalid referral code",
                referral_code=referral_code,
                identity=identity,
                context={"user_id": identity, "referral_code": referral_code}
            )

        await run_store_call(self.store.upsert_subscriber, identity, referral_code,
                             self.risk.default, timeout=self.timeout)
        logger.info("Subscribed", user_id=identity, ref=referral_code)
        return self.risk.default

    async def unsubscribe(self, identity: str) -> UnsubscribeStatus:
        """Remove a subscriber together with their pending signals."""
        existed = await run_store_call(self.store.delete_subscriber, identity,
                                       timeout=self.timeout)
        if not existed:
            return UnsubscribeStatus.NOT_SUBSCRIBED

        logger.info("Unsubscribed", user_id=identity)
        return UnsubscribeStatus.UNSUBSCRIBED

    async def set_risk(self, identity: str, value: Any) -> float:
        """
        Update a subscriber's risk multiplier in place.

        Returns:
            The stored risk multiplier

        Raises:
            InvalidRiskError: If the value is unparseable or out of range
            NotSubscribedError: If the caller has no subscription
        """
        try:
            risk = parse_risk(value, self.risk)
        except InvalidRiskError as e:
            e.identity = identity
            e.context.update({"user_id": identity, "value": str(value)})
            raise

        updated = await run_store_call(self.store.update_risk, identity, risk,
                                       timeout=self.timeout)
        if not updated:
            raise NotSubscribedError(
                "Subscription required to set risk",
                identity=identity,
                context={"user_id": identity}
            )

        logger.info("Risk updated", user_id=identity, risk=risk)
        return risk

    async def is_subscribed(self, identity: str) -> bool:
        record = await run_store_call(self.store.get_subscriber, identity,
                                      timeout=self.timeout)
        return record is not None

    async def get_risk(self, identity: str) -> Optional[float]:
        """Risk multiplier of a subscriber, or None if not subscribed."""
        record = await run_store_call(self.store.get_subscriber, identity,
                                      timeout=self.timeout)
        return record.risk if record else None
