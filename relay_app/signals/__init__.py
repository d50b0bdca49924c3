"""
Signal decoding and authentication.

Turns leader chat text into an authenticated SignalPayload, or nothing.
"""

from .auth import SignalAuthenticator, canonicalize
from .codec import SignalCodec, extract_fragment, parse_payload
from .models import SignalPayload

__all__ = [
    "SignalAuthenticator",
    "SignalCodec",
    "SignalPayload",
    "canonicalize",
    "extract_fragment",
    "parse_payload",
]
