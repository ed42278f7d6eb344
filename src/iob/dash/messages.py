"""Bounded output log shown in the message region above the input line."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

MessageType = Literal["success", "error", "info", "warning"]


@dataclass(frozen=True)
class Message:
    text: str
    type: MessageType = "info"


class MessageLog:
    """Keeps the newest *max_messages* messages and a scroll offset.

    ``scroll_offset`` counts messages hidden below the visible window, so 0
    always shows the newest entries. Adding a message snaps back to 0.
    """

    def __init__(self, max_messages: int = 20) -> None:
        self.max_messages = max(1, max_messages)
        self._messages: list[Message] = []
        self.scroll_offset = 0

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def add(self, text: str, type: MessageType = "info") -> Message:
        message = Message(text, type)
        self._messages.append(message)
        if len(self._messages) > self.max_messages:
            del self._messages[: len(self._messages) - self.max_messages]
        self.scroll_offset = 0
        return message

    def success(self, text: str) -> Message:
        return self.add(text, "success")

    def error(self, text: str) -> Message:
        return self.add(text, "error")

    def info(self, text: str) -> Message:
        return self.add(text, "info")

    def warning(self, text: str) -> Message:
        return self.add(text, "warning")

    def clear(self) -> None:
        self._messages.clear()
        self.scroll_offset = 0

    def scroll_up(self, lines: int = 1) -> bool:
        """Show older messages. Returns ``True`` if the offset moved."""
        return self._set_offset(self.scroll_offset + lines)

    def scroll_down(self, lines: int = 1) -> bool:
        return self._set_offset(self.scroll_offset - lines)

    def _set_offset(self, offset: int) -> bool:
        limit = max(0, len(self._messages) - 1)
        offset = max(0, min(limit, offset))
        if offset == self.scroll_offset:
            return False
        self.scroll_offset = offset
        return True
