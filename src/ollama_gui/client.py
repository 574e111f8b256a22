"""Thin adapters around the ``ollama`` async client.

The SDK has returned both typed objects and plain dicts across releases, so
every accessor here tolerates either shape.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from ollama import AsyncClient, ResponseError

from .exceptions import (
    OllamaConnectionError,
    OllamaGuiError,
    OllamaModelNotFoundError,
    OllamaStreamingError,
)

LOGGER = logging.getLogger(__name__)


def create_client(host: str, timeout: float) -> AsyncClient:
    """Build the async client used for catalog queries and chat streams."""
    return AsyncClient(host=host, timeout=timeout)


def field_of(payload: Any, name: str) -> Any:
    """Read ``name`` from an SDK object or a dict, returning ``None`` if absent."""
    if isinstance(payload, dict):
        return payload.get(name)
    return getattr(payload, name, None)


def extract_chunk_text(chunk: Any) -> str:
    """Extract streamed content text from a chat chunk."""
    message = field_of(chunk, "message")
    value = field_of(message, "content") if message is not None else None
    if value is None:
        # Generate-style payloads carry text at the top level.
        value = field_of(chunk, "response")
    return value if isinstance(value, str) else ""


def map_exception(exc: BaseException, *, host: str, model: str = "") -> OllamaGuiError:
    """Translate transport and SDK failures into the domain hierarchy."""
    if isinstance(exc, OllamaGuiError):
        return exc

    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return OllamaConnectionError(f"Unable to connect to Ollama host {host}.")

    if isinstance(exc, TimeoutError):
        return OllamaStreamingError(f"Ollama at {host} stopped responding.")

    if isinstance(exc, ResponseError):
        lower_message = str(exc.error).lower()
        if exc.status_code == 404 or ("model" in lower_message and "not found" in lower_message):
            return OllamaModelNotFoundError(f"Model {model!r} was not found on {host}.")
        return OllamaStreamingError(f"Ollama at {host} returned an error: {exc.error}")

    return OllamaStreamingError(f"Failed to stream response from Ollama at {host}: {exc}")


async def close_client(client: Any) -> None:
    """Release the client's connection pool; ``None`` and closed clients are ignored."""
    close = getattr(client, "close", None)
    if close is None:
        return
    try:
        await close()
    except Exception:  # noqa: BLE001 - the pool may already be torn down.
        LOGGER.debug("client.close_failed", exc_info=True)
