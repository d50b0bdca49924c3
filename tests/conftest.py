"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, Optional

import orjson
import pytest

from relay_app.config import ConfigLoader, RelayConfig
from relay_app.delivery import BaseNotifier, NotificationPermanentError
from relay_app.engine import RelayEngine
from relay_app.errors import ErrorSink
from relay_app.persistence import RelayStore
from relay_app.signals import SignalAuthenticator, SignalPayload

SECRET = "k"
LEADER = "BasedPing_bot"


class FakeNotifier(BaseNotifier):
    """In-memory notifier recording every message it is asked to send."""

    def __init__(self, fail_for: Optional[set[str]] = None, **kwargs):
        kwargs.setdefault("retry_attempts", 0)
        super().__init__("fake", **kwargs)
        self.fail_for = fail_for or set()
        self.sent: list[tuple[str, str]] = []

    async def send_text(self, chat_id: str, text: str) -> None:
        if chat_id in self.fail_for:
            raise NotificationPermanentError(f"chat {chat_id} unreachable")
        self.sent.append((chat_id, text))

    async def health_check(self) -> bool:
        return True

    def recipients(self) -> list[str]:
        return [chat_id for chat_id, _ in self.sent]


def sign_fields(fields: dict[str, Any], secret: str = SECRET) -> str:
    """Signature for a dict of signed fields."""
    payload = SignalPayload(**{k: fields[k] for k in ("symbol", "side", "size", "price", "leverage")})
    return SignalAuthenticator(secret).sign(payload)


def make_alert(fields: dict[str, Any], spoiler: bool = True) -> str:
    """Leader alert text embedding ``fields`` as the SIGNAL payload."""
    body = orjson.dumps(fields).decode("utf-8")
    wrapped = f"<tg-spoiler>SIGNAL: {body}</tg-spoiler>" if spoiler else f"SIGNAL: {body}"
    return f"New Trade Alert!\nBUY {fields.get('symbol')}\n{wrapped}"


@pytest.fixture
def alert_builder():
    return make_alert


@pytest.fixture
def signer():
    return sign_fields


@pytest.fixture
def notifier_factory():
    return FakeNotifier


@pytest.fixture
def btc_fields() -> dict[str, Any]:
    """Correctly signed BTCUSD signal fields."""
    fields = {"symbol": "BTCUSD", "side": "buy", "size": 1, "price": 50000, "leverage": 10}
    fields["signature"] = sign_fields(fields)
    return fields


@pytest.fixture
def relay_config(tmp_path: Path) -> RelayConfig:
    """Configuration isolated from the repo config file and environment."""
    loader = ConfigLoader.create(config_dir=tmp_path, environ={})
    return loader.load({
        "auth": {"secret": SECRET},
        "store": {"db_path": str(tmp_path / "relay.db")},
        "notification": {"method": "stdout", "retry_attempts": 0},
    })


@pytest.fixture
def store(relay_config: RelayConfig) -> RelayStore:
    return RelayStore(relay_config.store.db_path)


@pytest.fixture
def sink() -> ErrorSink:
    return ErrorSink()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def engine(relay_config: RelayConfig, store: RelayStore,
           notifier: FakeNotifier, sink: ErrorSink) -> RelayEngine:
    return RelayEngine(relay_config, store=store, notifier=notifier, sink=sink)
