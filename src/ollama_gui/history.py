"""Conversation history with a single open (streaming) assistant message."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum

from .exceptions import HistoryInvariantError


class MessageRole(str, Enum):
    """Chat roles understood by the inference backend."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class ChatMessage:
    """A single chat turn."""

    role: MessageRole
    content: str = ""

    def to_payload(self) -> dict[str, str]:
        """Render the message in the backend's ``{role, content}`` shape."""
        return {"role": self.role.value, "content": self.content}


class ConversationHistory:
    """Append-only message list.

    At most one message is open at a time, and it is always the most recently
    appended assistant message. Only the open message grows in place.
    """

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []
        self._open = False

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.snapshot())

    def append(self, role: MessageRole, content: str) -> None:
        """Append a closed message."""
        if self._open:
            raise HistoryInvariantError(
                f"Cannot append a {role.value} message while an assistant message is open."
            )
        self._messages.append(ChatMessage(role=role, content=content))

    def open_assistant(self) -> None:
        """Append an empty assistant message and mark it open."""
        if self._open:
            raise HistoryInvariantError("An assistant message is already open.")
        self._messages.append(ChatMessage(role=MessageRole.ASSISTANT))
        self._open = True

    def extend_open(self, chunk: str) -> None:
        """Append streamed text to the open assistant message."""
        if not self._open:
            raise HistoryInvariantError("Received a chunk with no open assistant message.")
        self._messages[-1].content += chunk

    def close_open(self) -> None:
        self._open = False

    def snapshot(self) -> tuple[ChatMessage, ...]:
        """Return detached copies of every message in conversation order."""
        return tuple(replace(message) for message in self._messages)
