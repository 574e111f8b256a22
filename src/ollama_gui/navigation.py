"""Top-level screen state machine.

The navigator owns exactly one live screen: either the model selection screen
or a chat session. It starts the catalog fetch whenever model selection is
entered and gives every chat session a freshly spawned generation worker,
which is cancelled when the session is left.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
import logging
from typing import Any, Union

from .catalog import LocalModel
from .exceptions import OllamaGuiError
from .protocol import WorkerEvent
from .session import (
    ChatSession,
    NavigateToModelSelection,
    PromptChanged,
    SubmitPrompt,
)
from .state import SessionAction
from .task_manager import TaskManager
from .worker import GenerationWorker

LOGGER = logging.getLogger(__name__)

CATALOG_TASK = "catalog"
WORKER_TASK = "generation_worker"


@dataclass
class ModelSelection:
    """Model picker state; ``error`` is only set when catalog errors are surfaced."""

    loading: bool = True
    models: list[LocalModel] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class CatalogLoaded:
    models: tuple[LocalModel, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class ModelChosen:
    name: str


@dataclass(frozen=True)
class WorkerEventReceived:
    """An event from the worker that belongs to ``session``."""

    session: ChatSession
    event: WorkerEvent


Screen = Union[ModelSelection, ChatSession]


class Navigator:
    """Switch between model selection and chat, managing background tasks."""

    def __init__(
        self,
        fetch_models: Callable[[], Awaitable[list[LocalModel]]],
        worker_factory: Callable[[], GenerationWorker],
        *,
        on_change: Callable[[], None] | None = None,
        task_manager: TaskManager | None = None,
    ) -> None:
        self._fetch_models = fetch_models
        self._worker_factory = worker_factory
        self.on_change = on_change
        self.tasks = task_manager or TaskManager()
        self._screen: Screen = ModelSelection()
        self._routes: dict[type, dict[type, Callable[[Any], None]]] = {
            ModelSelection: {
                CatalogLoaded: self._on_catalog_loaded,
                ModelChosen: self._on_model_chosen,
            },
            ChatSession: {
                PromptChanged: self._forward_to_session,
                SubmitPrompt: self._forward_to_session,
                NavigateToModelSelection: self._forward_to_session,
                WorkerEventReceived: self._on_worker_event,
            },
        }

    @property
    def screen(self) -> Screen:
        return self._screen

    def start(self) -> None:
        """Enter model selection and begin listing models. Needs a running loop."""
        self._enter_model_selection()
        self._notify()

    def dispatch(self, message: Any) -> None:
        """Route ``message`` to the live screen; messages for other screens are dropped."""
        handler = self._routes[type(self._screen)].get(type(message))
        if handler is None:
            LOGGER.debug(
                "navigation.message.dropped",
                extra={
                    "event": "navigation.message.dropped",
                    "screen": type(self._screen).__name__,
                    "message": type(message).__name__,
                },
            )
            return
        handler(message)
        self._notify()

    async def shutdown(self) -> None:
        """Cancel the catalog fetch and any running worker."""
        await self.tasks.cancel_all()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _enter_model_selection(self) -> None:
        self._transition(ModelSelection(loading=True))
        self.tasks.spawn(CATALOG_TASK, self._load_catalog())

    def _transition(self, screen: Screen) -> None:
        LOGGER.info(
            "navigation.transition",
            extra={
                "event": "navigation.transition",
                "from_screen": type(self._screen).__name__,
                "to_screen": type(screen).__name__,
            },
        )
        self._screen = screen

    async def _load_catalog(self) -> None:
        try:
            models = await self._fetch_models()
        except OllamaGuiError as exc:
            self.dispatch(CatalogLoaded(error=str(exc)))
            return
        self.dispatch(CatalogLoaded(models=tuple(models)))

    def _on_catalog_loaded(self, message: CatalogLoaded) -> None:
        self._screen = ModelSelection(
            loading=False, models=list(message.models), error=message.error
        )

    def _on_model_chosen(self, message: ModelChosen) -> None:
        name = message.name.strip()
        if not name:
            return
        self.tasks.cancel_nowait(CATALOG_TASK)
        session = ChatSession(model=name)
        self._transition(session)
        self.tasks.spawn(WORKER_TASK, self._pump_worker(session, self._worker_factory()))

    async def _pump_worker(self, session: ChatSession, worker: GenerationWorker) -> None:
        async with aclosing(worker.run()) as events:
            async for event in events:
                self.dispatch(WorkerEventReceived(session=session, event=event))

    def _forward_to_session(self, message: Any) -> None:
        session = self._screen
        assert isinstance(session, ChatSession)
        if session.update(message) is SessionAction.NAVIGATE_BACK:
            self.tasks.cancel_nowait(WORKER_TASK)
            self._enter_model_selection()

    def _on_worker_event(self, message: WorkerEventReceived) -> None:
        if message.session is not self._screen:
            return
        message.session.update(message.event)
