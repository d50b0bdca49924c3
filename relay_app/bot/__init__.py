"""Chat-facing adapters: update parsing and command replies."""

from .commands import CommandHandler, parse_command
from .updates import ChatEvent, parse_update

__all__ = ["ChatEvent", "CommandHandler", "parse_command", "parse_update"]
