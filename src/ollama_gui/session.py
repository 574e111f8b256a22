"""Per-conversation controller.

``ChatSession`` turns user actions into worker commands and worker events into
history mutations. Every handler is synchronous; the session never awaits and
never shares its history with the worker (commands carry snapshots).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any, Union

from .exceptions import WorkerDisconnectedError
from .history import ConversationHistory, MessageRole
from .protocol import (
    CommandSender,
    Generate,
    GenerationEnded,
    GenerationProgress,
    GenerationStarted,
    Ready,
)
from .state import SessionAction, WorkerState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptChanged:
    text: str


@dataclass(frozen=True)
class SubmitPrompt:
    pass


@dataclass(frozen=True)
class NavigateToModelSelection:
    pass


SessionMessage = Union[
    PromptChanged,
    SubmitPrompt,
    NavigateToModelSelection,
    Ready,
    GenerationStarted,
    GenerationProgress,
    GenerationEnded,
]


class ChatSession:
    """State of one conversation with one model."""

    def __init__(self, model: str) -> None:
        self.model = model
        self.prompt = ""
        self.waiting_for_response = False
        self.history = ConversationHistory()
        self.worker_state = WorkerState.NOT_READY
        self.last_error: str | None = None
        self._sender: CommandSender | None = None
        # Set between a successful send and the worker's GenerationStarted.
        self._awaiting_start = False
        self._handlers: dict[type, Callable[[Any], SessionAction]] = {
            PromptChanged: self._on_prompt_changed,
            SubmitPrompt: self._on_submit_prompt,
            NavigateToModelSelection: self._on_navigate_back,
            Ready: self._on_ready,
            GenerationStarted: self._on_generation_started,
            GenerationProgress: self._on_generation_progress,
            GenerationEnded: self._on_generation_ended,
        }

    @property
    def can_submit(self) -> bool:
        """Whether a submission would currently be forwarded to the worker."""
        return (
            self.worker_state is WorkerState.READY
            and not self.waiting_for_response
            and not self._awaiting_start
        )

    @property
    def message_count(self) -> int:
        return len(self.history)

    @property
    def status_text(self) -> str:
        if self.worker_state is WorkerState.DISCONNECTED:
            detail = f": {self.last_error}" if self.last_error else ""
            return f"Disconnected{detail}"
        if self.worker_state is WorkerState.NOT_READY:
            return "Connecting..."
        if self.waiting_for_response or self._awaiting_start:
            return "Generating..."
        if self.last_error:
            return f"Error: {self.last_error}"
        return ""

    def update(self, message: SessionMessage) -> SessionAction:
        """Apply ``message`` and report whether the navigator must act."""
        handler = self._handlers.get(type(message))
        if handler is None:
            raise TypeError(f"Unsupported chat session message: {message!r}")
        return handler(message)

    def _on_prompt_changed(self, message: PromptChanged) -> SessionAction:
        if not self.waiting_for_response:
            self.prompt = message.text
        return SessionAction.NONE

    def _on_submit_prompt(self, _: SubmitPrompt) -> SessionAction:
        if not self.can_submit or not self.prompt.strip() or self._sender is None:
            LOGGER.debug(
                "session.submit.ignored",
                extra={
                    "event": "session.submit.ignored",
                    "worker_state": self.worker_state.value,
                    "waiting": self.waiting_for_response,
                },
            )
            return SessionAction.NONE

        prompt = self.prompt
        try:
            self._sender.try_send(
                Generate(prompt=prompt, history=self.history.snapshot(), model=self.model)
            )
        except WorkerDisconnectedError as exc:
            self.worker_state = WorkerState.DISCONNECTED
            self.last_error = str(exc)
            self._sender = None
            LOGGER.warning(
                "session.worker.disconnected",
                extra={"event": "session.worker.disconnected", "model": self.model},
            )
            return SessionAction.NONE

        self.history.append(MessageRole.USER, prompt)
        self._awaiting_start = True
        self.last_error = None
        return SessionAction.NONE

    def _on_navigate_back(self, _: NavigateToModelSelection) -> SessionAction:
        return SessionAction.NAVIGATE_BACK

    def _on_ready(self, event: Ready) -> SessionAction:
        self._sender = event.sender
        self.worker_state = WorkerState.READY
        return SessionAction.NONE

    def _on_generation_started(self, _: GenerationStarted) -> SessionAction:
        self._awaiting_start = False
        self.waiting_for_response = True
        self.prompt = ""
        self.history.open_assistant()
        return SessionAction.NONE

    def _on_generation_progress(self, event: GenerationProgress) -> SessionAction:
        self.history.extend_open(event.chunk)
        return SessionAction.NONE

    def _on_generation_ended(self, event: GenerationEnded) -> SessionAction:
        self.waiting_for_response = False
        self._awaiting_start = False
        self.history.close_open()
        self.last_error = event.error
        if self.worker_state is not WorkerState.READY:
            # The worker failed before it ever became ready.
            self.worker_state = WorkerState.DISCONNECTED
        return SessionAction.NONE
