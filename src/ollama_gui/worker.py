"""Background generation worker.

A worker lives exactly as long as one chat screen. It owns the backend client,
receives ``Generate`` commands through a ``CommandSender`` and reports progress
as a stream of events produced by :meth:`GenerationWorker.run`.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
import logging
from typing import Any

from .client import close_client, extract_chunk_text, map_exception
from .history import MessageRole
from .protocol import (
    DEFAULT_INBOX_SIZE,
    Command,
    CommandSender,
    Generate,
    GenerationEnded,
    GenerationProgress,
    GenerationStarted,
    Ready,
    WorkerEvent,
)
from .state import WorkerState

LOGGER = logging.getLogger(__name__)


class GenerationWorker:
    """Stream one chat completion at a time on behalf of a chat session."""

    def __init__(
        self,
        client_factory: Callable[[], Any],
        *,
        host: str = "",
        verify_connection: bool = True,
        generation_timeout: float | None = None,
        inbox_size: int = DEFAULT_INBOX_SIZE,
    ) -> None:
        self._client_factory = client_factory
        self.host = host
        self.verify_connection = verify_connection
        self.generation_timeout = generation_timeout
        self._inbox_size = max(1, inbox_size)
        self._state = WorkerState.NOT_READY

    @property
    def state(self) -> WorkerState:
        return self._state

    async def run(self) -> AsyncIterator[WorkerEvent]:
        """Connect, announce readiness, then serve commands until cancelled.

        Commands are handled strictly one after another; a command submitted
        while a reply is streaming waits in the inbox behind it.
        """
        client: Any = None
        try:
            try:
                client = self._client_factory()
                if self.verify_connection:
                    await client.list()
            except Exception as exc:  # noqa: BLE001 - surfaced as an event, never raised.
                mapped = map_exception(exc, host=self.host)
                LOGGER.warning(
                    "worker.connect.failed",
                    extra={
                        "event": "worker.connect.failed",
                        "error_type": mapped.__class__.__name__,
                    },
                )
                yield GenerationEnded(error=str(mapped))
                return

            inbox: asyncio.Queue[Command] = asyncio.Queue(maxsize=self._inbox_size)
            sender = CommandSender(inbox)
            self._state = WorkerState.READY
            LOGGER.info("worker.ready", extra={"event": "worker.ready"})
            try:
                yield Ready(sender)
                while True:
                    command = await inbox.get()
                    async with aclosing(self._generate(client, command)) as events:
                        async for event in events:
                            yield event
            finally:
                sender.close()
                LOGGER.info("worker.stopped", extra={"event": "worker.stopped"})
        finally:
            # Tearing down the worker drops its connection.
            await close_client(client)

    async def _generate(self, client: Any, command: Generate) -> AsyncIterator[WorkerEvent]:
        LOGGER.info(
            "worker.generation.start",
            extra={
                "event": "worker.generation.start",
                "model": command.model,
                "history_length": len(command.history),
            },
        )
        yield GenerationStarted()

        messages = [message.to_payload() for message in command.history]
        messages.append({"role": MessageRole.USER.value, "content": command.prompt})

        error: str | None = None
        chunks = 0
        stream: Any = None
        try:
            stream = await client.chat(model=command.model, messages=messages, stream=True)
            iterator = stream.__aiter__()
            while True:
                try:
                    chunk = await self._next_chunk(iterator)
                except StopAsyncIteration:
                    break
                text = extract_chunk_text(chunk)
                if text:
                    chunks += 1
                    yield GenerationProgress(text)
        except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
            mapped = map_exception(exc, host=self.host, model=command.model)
            error = str(mapped)
            LOGGER.warning(
                "worker.generation.failed",
                extra={
                    "event": "worker.generation.failed",
                    "model": command.model,
                    "error_type": mapped.__class__.__name__,
                    "chunks": chunks,
                },
            )
        finally:
            await _close_stream(stream)

        LOGGER.info(
            "worker.generation.end",
            extra={"event": "worker.generation.end", "chunks": chunks, "failed": error is not None},
        )
        yield GenerationEnded(error=error)

    async def _next_chunk(self, iterator: AsyncIterator[Any]) -> Any:
        if self.generation_timeout is None:
            return await iterator.__anext__()
        return await asyncio.wait_for(iterator.__anext__(), timeout=self.generation_timeout)


async def _close_stream(stream: Any) -> None:
    """Release the backend response when the stream did not run to completion."""
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:  # noqa: BLE001 - already finished or already failed.
        LOGGER.debug("worker.stream.close_failed", exc_info=True)
