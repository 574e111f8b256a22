"""Domain exception hierarchy for the Ollama GUI client."""

from __future__ import annotations


class OllamaGuiError(RuntimeError):
    """Base class for all domain-level errors."""


class OllamaConnectionError(OllamaGuiError):
    """Raised when the Ollama host cannot be reached."""


class OllamaModelNotFoundError(OllamaGuiError):
    """Raised when the requested model is unavailable."""


class OllamaStreamingError(OllamaGuiError):
    """Raised when streaming fails for non-connectivity reasons."""


class WorkerDisconnectedError(OllamaGuiError):
    """Raised when a command cannot be handed to the generation worker."""


class HistoryInvariantError(OllamaGuiError):
    """Raised when a history mutation would break the open-message rule."""


class ConfigValidationError(OllamaGuiError):
    """Raised when configuration cannot be validated safely."""
