"""Translation of Telegram webhook updates into chat events."""

from dataclasses import dataclass
from typing import Any, Optional

MESSAGE_KEYS = ("message", "edited_message", "channel_post")


@dataclass(frozen=True)
class ChatEvent:
    """One inbound chat message."""
    sender_id: str
    sender_username: Optional[str]
    text: str
    chat_id: Optional[str] = None

    @property
    def reply_to(self) -> str:
        """Chat that replies go to: the originating chat, else the sender."""
        return self.chat_id or self.sender_id


def parse_update(update: dict[str, Any]) -> Optional[ChatEvent]:
    """
    Extract a ChatEvent from a Telegram update.

    Returns None for updates that carry no text message or no sender.
    """
    if not isinstance(update, dict):
        return None

    message = next(
        (update[key] for key in MESSAGE_KEYS if isinstance(update.get(key), dict)),
        None
    )
    if message is None:
        return None

    text = message.get("text")
    sender = message.get("from") or {}
    if not isinstance(text, str) or "id" not in sender:
        return None

    chat = message.get("chat") or {}
    chat_id = chat.get("id")

    return ChatEvent(
        sender_id=str(sender["id"]),
        sender_username=sender.get("username"),
        text=text,
        chat_id=str(chat_id) if chat_id is not None else None,
    )
