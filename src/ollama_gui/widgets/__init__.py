"""Widget exports for the ollama_gui UI."""

from .conversation import ConversationView
from .message import MessageBubble

__all__ = ["ConversationView", "MessageBubble"]
