"""Main Textual application: hosts the navigator and renders its live screen."""

from __future__ import annotations

import logging
import sys
from typing import Any

from textual.app import App
from textual.binding import Binding
from textual.message import Message

from .catalog import LocalModel, fetch_local_models
from .client import close_client, create_client
from .config import CatalogErrorPolicy, generation_timeout, load_config
from .logging_utils import configure_logging
from .navigation import ModelSelection, Navigator
from .screens import ChatScreen, ModelSelectScreen
from .worker import GenerationWorker

LOGGER = logging.getLogger(__name__)


class NavigationChanged(Message):
    """Posted whenever the navigator's state changes and the UI must re-render."""


def build_navigator(config: dict[str, Any]) -> Navigator:
    """Wire the catalog fetcher and worker factory from the ``[ollama]`` config."""
    ollama_cfg = config["ollama"]
    host = str(ollama_cfg["host"])
    timeout = int(ollama_cfg["timeout"])
    policy = CatalogErrorPolicy(ollama_cfg["catalog_errors"])

    def client_factory() -> Any:
        return create_client(host, timeout)

    async def fetch_models() -> list[LocalModel]:
        client = client_factory()
        try:
            return await fetch_local_models(client, host=host, policy=policy)
        finally:
            await close_client(client)

    def worker_factory() -> GenerationWorker:
        return GenerationWorker(
            client_factory,
            host=host,
            verify_connection=bool(ollama_cfg["verify_connection"]),
            generation_timeout=generation_timeout(config),
        )

    return Navigator(fetch_models, worker_factory)


class OllamaGuiApp(App[None]):
    """Pick a local Ollama model and chat with it."""

    BINDINGS = [Binding("ctrl+q", "quit", "Quit")]

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        navigator: Navigator | None = None,
    ) -> None:
        super().__init__()
        self.config = config if config is not None else load_config()
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )
        self.title = str(self.config["app"]["title"])
        self.navigator = navigator or build_navigator(self.config)
        self.navigator.on_change = self._request_render
        self._screen_installed = False

    def on_mount(self) -> None:
        theme = str(self.config["app"]["theme"])
        if theme in self.available_themes:
            self.theme = theme
        else:
            LOGGER.warning("app.theme.unknown", extra={"event": "app.theme.unknown", "theme": theme})
        self.navigator.start()

    async def on_unmount(self) -> None:
        await self.navigator.shutdown()

    def _request_render(self) -> None:
        self.post_message(NavigationChanged())

    def on_navigation_changed(self, _: NavigationChanged) -> None:
        self._render_navigation()

    def _render_navigation(self) -> None:
        state = self.navigator.screen
        current = self.screen if self._screen_installed else None

        if isinstance(state, ModelSelection):
            if isinstance(current, ModelSelectScreen):
                current.show(state)
                return
            self._install(ModelSelectScreen(state, self.navigator.dispatch))
            return

        if isinstance(current, ChatScreen) and current.session is state:
            current.show()
            return
        self._install(ChatScreen(state, self.navigator.dispatch))

    def _install(self, screen: ModelSelectScreen | ChatScreen) -> None:
        if self._screen_installed:
            self.switch_screen(screen)
        else:
            self.push_screen(screen)
            self._screen_installed = True
