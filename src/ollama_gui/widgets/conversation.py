"""Scrollable conversation view widget."""

from __future__ import annotations

from collections.abc import Sequence

from textual.containers import Horizontal, VerticalScroll

from ..history import ChatMessage, MessageRole
from .message import MessageBubble

_ALIGNMENT = {
    MessageRole.USER: "right",
    MessageRole.ASSISTANT: "left",
    MessageRole.SYSTEM: "center",
    MessageRole.TOOL: "center",
}


class ConversationView(VerticalScroll):
    """A scrollable container that hosts message bubbles in history order."""

    DEFAULT_CSS = """
    ConversationView > .bubble-row {
        height: auto;
        width: 100%;
    }
    """

    def __init__(self, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self._bubbles: list[MessageBubble] = []

    @property
    def bubble_count(self) -> int:
        return len(self._bubbles)

    def sync(self, messages: Sequence[ChatMessage]) -> None:
        """Bring rendered bubbles in line with ``messages``.

        History only grows, and only its last entry changes in place, so
        existing bubbles are updated and new ones appended.
        """
        if len(messages) < len(self._bubbles):
            self.remove_children()
            self._bubbles = []

        for bubble, message in zip(self._bubbles, messages):
            bubble.set_content(message.content)

        for message in messages[len(self._bubbles) :]:
            bubble = MessageBubble(message.content, message.role)
            row = Horizontal(bubble, classes="bubble-row")
            row.styles.align_horizontal = _ALIGNMENT[message.role]
            self.mount(row)
            self._bubbles.append(bubble)

        if messages:
            self.scroll_end(animate=False)
