"""Standard output notification mechanism for local runs."""

import sys
from datetime import datetime, timezone

import orjson

from .base import BaseNotifier


class StdoutNotifier(BaseNotifier):
    """Writes each outbound message to stdout as a JSON line."""

    def __init__(self, name: str = "stdout", **kwargs):
        super().__init__(name, **kwargs)

    async def send_text(self, chat_id: str, text: str) -> None:
        line = orjson.dumps({
            "chat_id": chat_id,
            "text": text,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }).decode("utf-8")
        print(line, file=sys.stdout, flush=True)

    async def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except ValueError:
            return False
