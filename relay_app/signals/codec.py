"""
Extraction and parsing of signals embedded in leader chat messages.

A leader alert carries its payload as ``SIGNAL: {...}``, normally hidden in
spoiler markup. Extraction runs in two stages with fixed precedence:

1. Strict: the first ``<tg-spoiler>SIGNAL: {...}</tg-spoiler>`` block.
2. Loose, only when no strict block exists: the first ``SIGNAL:`` followed by
   a balanced brace-delimited object. Braces inside JSON strings are ignored.

If a text contains two candidate blocks, the strict one wins, and among
blocks of the same kind the first one wins.
"""

import re
from typing import Any, Optional

import orjson
import structlog

from ..errors import MalformedPayloadError
from .models import SIGNED_FIELDS, SignalPayload

logger = structlog.get_logger(__name__)

STRICT_PATTERN = re.compile(
    r"<tg-spoiler>\s*SIGNAL:\s*(\{.*?\})\s*</tg-spoiler>",
    re.DOTALL,
)
LOOSE_MARKER = "SIGNAL:"

NUMERIC_FIELDS = ("size", "price", "leverage")
TEXT_FIELDS = ("symbol", "side")


def _scan_object(text: str, start: int) -> Optional[str]:
    """Return the balanced ``{...}`` starting at ``start``, if it closes."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return None


def extract_strict(text: str) -> Optional[str]:
    """Find the payload inside spoiler markup."""
    match = STRICT_PATTERN.search(text)
    return match.group(1) if match else None


def extract_loose(text: str) -> Optional[str]:
    """Find the first balanced object following a bare ``SIGNAL:`` marker."""
    position = text.find(LOOSE_MARKER)

    while position != -1:
        start = position + len(LOOSE_MARKER)
        while start < len(text) and text[start].isspace():
            start += 1

        if start < len(text) and text[start] == "{":
            fragment = _scan_object(text, start)
            if fragment is not None:
                return fragment

        position = text.find(LOOSE_MARKER, position + 1)

    return None


def extract_fragment(text: str) -> Optional[str]:
    """Locate the embedded payload, strict form first."""
    fragment = extract_strict(text)
    if fragment is not None:
        return fragment
    return extract_loose(text)


def parse_payload(fragment: str) -> SignalPayload:
    """
    Parse an extracted fragment into a SignalPayload.

    Raises:
        MalformedPayloadError: If the fragment is not a JSON object with
            the required fields and types
    """
    try:
        data = orjson.loads(fragment)
    except orjson.JSONDecodeError as e:
        raise MalformedPayloadError(
            f"Invalid JSON: {e}",
            raw_data=fragment[:200],
            expected_format="json object"
        ) from e

    if not isinstance(data, dict):
        raise MalformedPayloadError(
            "Signal payload is not an object",
            raw_data=fragment[:200],
            expected_format="json object"
        )

    missing = [name for name in SIGNED_FIELDS if name not in data]
    if missing:
        raise MalformedPayloadError(
            f"Missing fields: {', '.join(missing)}",
            raw_data=fragment[:200],
            context={"missing_fields": missing}
        )

    for name in TEXT_FIELDS:
        if not isinstance(data[name], str) or not data[name].strip():
            raise MalformedPayloadError(f"Field {name} must be a non-empty string",
                                        raw_data=fragment[:200])

    for name in NUMERIC_FIELDS:
        if not _is_number(data[name]):
            raise MalformedPayloadError(f"Field {name} must be a number",
                                        raw_data=fragment[:200])

    signature = data.get("signature")
    if signature is not None and not isinstance(signature, str):
        raise MalformedPayloadError("Field signature must be a string",
                                    raw_data=fragment[:200])

    return SignalPayload(
        symbol=data["symbol"],
        side=data["side"],
        size=data["size"],
        price=data["price"],
        leverage=data["leverage"],
        signature=signature,
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SignalCodec:
    """Recognizes leader alerts and decodes the signal they carry."""

    def __init__(self, leader_username: str, marker_phrase: str = "New Trade Alert!"):
        self.leader_username = leader_username
        self.marker_phrase = marker_phrase

    def is_leader_alert(self, text: Optional[str], sender_username: Optional[str]) -> bool:
        """Both the marker phrase and the leader's identity are required."""
        if not text or sender_username is None:
            return False
        return self.marker_phrase in text and sender_username == self.leader_username

    def decode(self, text: Optional[str], sender_username: Optional[str]) -> Optional[SignalPayload]:
        """
        Decode a chat message.

        Returns:
            The parsed payload, or None when the message is not a leader
            alert or carries no payload fragment

        Raises:
            MalformedPayloadError: If a fragment was found but cannot be parsed
        """
        if not self.is_leader_alert(text, sender_username):
            return None

        logger.info("Leader alert received", sender=sender_username, preview=text[:100])

        fragment = extract_fragment(text)
        if fragment is None:
            logger.info("No signal fragment in leader alert", sender=sender_username)
            return None

        return parse_payload(fragment)
