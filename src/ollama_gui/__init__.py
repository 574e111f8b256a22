"""Top-level package for ollama-gui."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import OllamaGuiApp
    from .catalog import LocalModel, fetch_local_models
    from .config import ensure_config_dir, load_config
    from .history import ChatMessage, ConversationHistory, MessageRole
    from .navigation import Navigator
    from .session import ChatSession
    from .worker import GenerationWorker

__all__ = [
    "ChatMessage",
    "ChatSession",
    "ConversationHistory",
    "GenerationWorker",
    "LocalModel",
    "MessageRole",
    "Navigator",
    "OllamaGuiApp",
    "ensure_config_dir",
    "fetch_local_models",
    "load_config",
]

_LAZY_EXPORTS = {
    "ChatMessage": ".history",
    "ConversationHistory": ".history",
    "MessageRole": ".history",
    "ChatSession": ".session",
    "GenerationWorker": ".worker",
    "LocalModel": ".catalog",
    "fetch_local_models": ".catalog",
    "Navigator": ".navigation",
    "ensure_config_dir": ".config",
    "load_config": ".config",
    "OllamaGuiApp": ".app",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so importing the package does not pull in Textual."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
