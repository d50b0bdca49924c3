#!/usr/bin/env python3
"""
Basic Usage Example - Leader Signal Relay

This script runs the relay in-process against a throwaway database and shows
how to:
- Build the engine from configuration
- Subscribe users through chat commands
- Relay a signed leader alert to every subscriber
- Poll and acknowledge a subscriber's inbox

Run: python examples/basic_usage.py
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Any, Dict

import orjson

from relay_app.bot import ChatEvent
from relay_app.config import ConfigLoader
from relay_app.engine import RelayEngine
from relay_app.logging import configure_logging
from relay_app.signals import SignalAuthenticator, SignalPayload

SECRET = "demo-secret"
LEADER = "BasedPing_bot"


def create_leader_alert(fields: Dict[str, Any]) -> str:
    """Create a signed leader alert the way the leader's bot posts it."""
    payload = SignalPayload(**fields)
    signature = SignalAuthenticator(SECRET).sign(payload)
    body = orjson.dumps({**fields, "signature": signature}).decode("utf-8")
    return (
        "New Trade Alert!\n"
        f"{fields['side'].upper()} {fields['symbol']} x{fields['leverage']}\n"
        f"<tg-spoiler>SIGNAL: {body}</tg-spoiler>"
    )


def user(user_id: str, text: str) -> ChatEvent:
    return ChatEvent(sender_id=user_id, sender_username=f"user{user_id}", text=text)


async def run_demo(db_path: Path) -> None:
    loader = ConfigLoader.create(config_dir=db_path.parent, environ={})
    config = loader.load({
        "auth": {"secret": SECRET},
        "store": {"db_path": str(db_path)},
        "notification": {"method": "stdout"},
    })
    engine = RelayEngine(config)

    print("👥 Subscribing users...")
    for user_id, text in [("101", "/subscribe ref=GODSEYE"),
                          ("102", "/subscribe ref=GODSEYE"),
                          ("102", "/risk 1.5"),
                          ("103", "/subscribe ref=NOPE")]:
        reply = await engine.handle_event(user(user_id, text))
        print(f"  {user_id} {text!r} -> {reply!r}")

    print("\n📡 Leader posts a signal...")
    alert = create_leader_alert({
        "symbol": "BTCUSD", "side": "buy", "size": 1, "price": 50000, "leverage": 10,
    })
    report = await engine.process_message(
        ChatEvent(sender_id="1", sender_username=LEADER, text=alert)
    )
    print(f"  Broadcast {report.signal_id}: {report.persisted_count}/{report.recipient_count} "
          f"stored, {report.notified_count} notified")

    print("\n📥 Polling inboxes...")
    for user_id in ("101", "102", "103"):
        signals = await engine.inbox.list_pending(user_id)
        print(f"  {user_id}: {len(signals)} pending")

    signal_id = report.signal_id
    await engine.inbox.acknowledge("101", signal_id)
    print(f"\n✅ 101 acknowledged {signal_id}; "
          f"{len(await engine.inbox.list_pending('101'))} left")

    print("\n📊 Stats:")
    print(orjson.dumps(engine.get_stats(), option=orjson.OPT_INDENT_2).decode("utf-8"))

    await engine.close()


def main() -> None:
    configure_logging(level="WARNING")
    with tempfile.TemporaryDirectory() as temp_dir:
        asyncio.run(run_demo(Path(temp_dir) / "demo_relay.db"))


if __name__ == "__main__":
    main()
