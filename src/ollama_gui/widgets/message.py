"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from typing import Any

from rich.console import RenderableType
from rich.markdown import Markdown
from rich.text import Text
from textual.widgets import Static

from ..history import MessageRole


class MessageBubble(Static):
    """Render a single chat message; assistant text is rendered as markdown."""

    DEFAULT_CSS = """
    MessageBubble {
        width: auto;
        max-width: 80%;
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
    }
    MessageBubble.role-user {
        background: $boost;
        border: round $primary;
    }
    MessageBubble.role-assistant {
        background: $panel;
        border: round $secondary;
    }
    MessageBubble.role-system, MessageBubble.role-tool {
        color: $text-muted;
        border: round $panel;
    }
    """

    def __init__(self, content: str, role: MessageRole, **kwargs: Any) -> None:
        super().__init__(self._renderable_for(content, role), **kwargs)
        self.role = role
        self.message_content = content
        self.add_class(f"role-{role.value}")
        self.border_title = self.role_prefix

    @property
    def role_prefix(self) -> str:
        """Return a human-friendly role label."""
        return "You" if self.role is MessageRole.USER else self.role.value.capitalize()

    @staticmethod
    def _renderable_for(content: str, role: MessageRole) -> RenderableType:
        text = content.rstrip()
        if role is MessageRole.ASSISTANT:
            return Markdown(text) if text else Text("...", style="dim")
        return Text(text)

    def set_content(self, content: str) -> None:
        """Replace the bubble text when it has changed."""
        if content == self.message_content:
            return
        self.message_content = content
        self.update(self._renderable_for(content, self.role))
