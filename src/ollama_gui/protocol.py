"""Commands and events exchanged between a chat session and its generation worker."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Union

from .exceptions import WorkerDisconnectedError
from .history import ChatMessage

DEFAULT_INBOX_SIZE = 256


@dataclass(frozen=True)
class Generate:
    """Ask the worker to stream a reply to ``prompt`` given prior ``history``."""

    prompt: str
    history: tuple[ChatMessage, ...]
    model: str


Command = Generate


class CommandSender:
    """Non-blocking handle used by a session to submit commands to its worker."""

    def __init__(self, inbox: asyncio.Queue[Command]) -> None:
        self._inbox = inbox
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Refuse further commands; called when the worker goes away."""
        self._closed = True

    def try_send(self, command: Command) -> None:
        """Enqueue ``command`` without suspending.

        Raises:
            WorkerDisconnectedError: the worker has stopped or its inbox is full.
        """
        if self._closed:
            raise WorkerDisconnectedError("The generation worker is no longer running.")
        try:
            self._inbox.put_nowait(command)
        except asyncio.QueueFull as exc:
            raise WorkerDisconnectedError(
                "The generation worker is not accepting commands."
            ) from exc


@dataclass(frozen=True)
class Ready:
    """The worker is connected; ``sender`` accepts commands from now on."""

    sender: CommandSender


@dataclass(frozen=True)
class GenerationStarted:
    """A ``Generate`` command was picked up; an assistant reply begins."""


@dataclass(frozen=True)
class GenerationProgress:
    """One chunk of streamed assistant text, in backend order."""

    chunk: str


@dataclass(frozen=True)
class GenerationEnded:
    """The current generation finished.

    ``error`` carries a human readable description when the backend failed,
    or when the worker could not connect at all (in which case no ``Ready``
    was ever emitted).
    """

    error: str | None = None


WorkerEvent = Union[Ready, GenerationStarted, GenerationProgress, GenerationEnded]
