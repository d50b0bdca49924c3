#!/usr/bin/env python3
"""Print a signed leader alert ready to post in the group chat.

Usage:
    RELAY_SIGNING_SECRET=... python scripts/sign_signal.py BTCUSD buy 1 50000 10
"""

import argparse
import os
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import orjson

from relay_app.signals import SignalAuthenticator, SignalPayload


def _number(value: str):
    try:
        return int(value)
    except ValueError:
        return float(value)


def main():
    parser = argparse.ArgumentParser(description="Sign a trade signal for broadcast.")
    parser.add_argument("symbol")
    parser.add_argument("side")
    parser.add_argument("size", type=_number)
    parser.add_argument("price", type=_number)
    parser.add_argument("leverage", type=_number)
    parser.add_argument("--secret", default=os.environ.get("RELAY_SIGNING_SECRET", ""))
    parser.add_argument("--length", type=int, default=16, help="signature length in hex chars")
    args = parser.parse_args()

    if not args.secret:
        parser.error("signing secret required (--secret or RELAY_SIGNING_SECRET)")

    payload = SignalPayload(args.symbol, args.side, args.size, args.price, args.leverage)
    signature = SignalAuthenticator(args.secret, args.length).sign(payload)
    body = orjson.dumps({**payload.signed_fields(), "signature": signature}).decode("utf-8")

    print("New Trade Alert!")
    print(f"{args.side.upper()} {args.symbol} x{args.leverage} @ {args.price}")
    print(f"<tg-spoiler>SIGNAL: {body}</tg-spoiler>")


if __name__ == "__main__":
    main()
