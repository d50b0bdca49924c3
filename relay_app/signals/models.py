"""Signal payload data model."""

from dataclasses import dataclass
from typing import Any, Optional, Union

Number = Union[int, float]

# Fields covered by the signature, in canonical order.
SIGNED_FIELDS = ("symbol", "side", "size", "price", "leverage")


@dataclass(frozen=True)
class SignalPayload:
    """Structured trade instruction as posted by the leader."""
    symbol: str
    side: str
    size: Number
    price: Number
    leverage: Number
    signature: Optional[str] = None

    def signed_fields(self) -> dict[str, Any]:
        """Fields covered by the signature, in canonical order."""
        return {name: getattr(self, name) for name in SIGNED_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        data = self.signed_fields()
        data["signature"] = self.signature
        return data

    def to_record(self, signal_id: str) -> dict[str, Any]:
        """Inbox representation: the payload plus the broadcast id."""
        record = self.to_dict()
        record["id"] = signal_id
        return record
