"""Textual screens for model selection and chat.

Screens only render navigator state and translate widget events into
navigator messages through the ``dispatch`` callable they are given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import Screen
from textual.widgets import Button, Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from .navigation import ModelChosen, ModelSelection
from .session import ChatSession, NavigateToModelSelection, PromptChanged, SubmitPrompt
from .state import WorkerState
from .widgets.conversation import ConversationView

Dispatch = Callable[[Any], None]


class ModelSelectScreen(Screen[None]):
    """List local models and open a chat with the chosen one."""

    CSS = """
    ModelSelectScreen {
        padding: 1 2;
    }

    #model-select-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #model-select-loading {
        width: 100%;
        height: 1fr;
        content-align: center middle;
    }

    #model-select-options {
        height: 1fr;
    }

    #model-select-note {
        color: $text-muted;
        padding-top: 1;
    }
    """

    def __init__(self, state: ModelSelection, dispatch: Dispatch) -> None:
        super().__init__()
        self.state = state
        self._dispatch = dispatch

    def compose(self) -> ComposeResult:
        yield Static("Select a model", id="model-select-title")
        yield Static("Loading models...", id="model-select-loading")
        yield OptionList(id="model-select-options")
        yield Static("", id="model-select-note")

    def on_mount(self) -> None:
        self._render_state()

    def show(self, state: ModelSelection) -> None:
        """Render a new snapshot of the selection state."""
        self.state = state
        if self.is_mounted:
            self._render_state()

    def _render_state(self) -> None:
        loading = self.query_one("#model-select-loading", Static)
        options = self.query_one("#model-select-options", OptionList)
        note = self.query_one("#model-select-note", Static)

        loading.display = self.state.loading
        options.display = not self.state.loading
        options.clear_options()
        if self.state.loading:
            note.update("")
            return

        options.add_options(
            Option(f"{model.name}  ({model.size_label})", id=model.name)
            for model in self.state.models
        )
        if self.state.error:
            note.update(f"Unable to list models: {self.state.error}")
        elif not self.state.models:
            note.update("No local models found. Pull a model with Ollama and come back.")
        else:
            note.update("Enter/click to start chatting")
            options.highlighted = 0
            options.focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if event.option.id:
            self._dispatch(ModelChosen(name=event.option.id))


class ChatScreen(Screen[None]):
    """Conversation view bound to a single chat session."""

    CSS = """
    ChatScreen {
        layout: vertical;
        padding: 1 2;
    }

    #chat-header {
        height: 3;
    }

    #chat-model {
        width: 1fr;
        content-align: center middle;
        height: 3;
        text-style: bold;
    }

    #chat-count {
        height: 3;
        content-align: right middle;
    }

    #conversation {
        height: 1fr;
    }

    #chat-status {
        color: $warning;
        height: auto;
    }

    #chat-footer {
        height: auto;
    }

    #prompt-input {
        width: 1fr;
    }
    """

    BINDINGS = [Binding("escape", "go_back", "Back")]

    def __init__(self, session: ChatSession, dispatch: Dispatch) -> None:
        super().__init__()
        self.session = session
        self._dispatch = dispatch

    def compose(self) -> ComposeResult:
        with Horizontal(id="chat-header"):
            yield Button("< Go back", id="back-button")
            yield Label(self.session.model, id="chat-model")
            yield Label("0 messages", id="chat-count")
        yield ConversationView(id="conversation")
        yield Static("", id="chat-status")
        with Container(id="chat-footer"), Horizontal():
            yield Input(placeholder="Input", id="prompt-input")
            yield Button("Send", id="send-button", variant="primary")

    def on_mount(self) -> None:
        self.show()

    def show(self) -> None:
        """Render the current session state."""
        if not self.is_mounted:
            return
        session = self.session
        self.query_one("#chat-count", Label).update(f"{session.message_count} messages")
        self.query_one(ConversationView).sync(session.history.snapshot())
        self.query_one("#chat-status", Static).update(session.status_text)

        prompt_input = self.query_one("#prompt-input", Input)
        # The input leads the session while typing; only a sent prompt clears it.
        if not session.prompt and prompt_input.value:
            prompt_input.value = ""
        prompt_input.disabled = (
            session.waiting_for_response or session.worker_state is WorkerState.DISCONNECTED
        )
        self.query_one("#send-button", Button).disabled = not session.can_submit
        if not prompt_input.disabled and self.focused is None:
            prompt_input.focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "prompt-input":
            self._dispatch(PromptChanged(text=event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "prompt-input":
            event.stop()
            self._dispatch(SubmitPrompt())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-button":
            event.stop()
            self._dispatch(SubmitPrompt())
        elif event.button.id == "back-button":
            event.stop()
            self._dispatch(NavigateToModelSelection())

    def action_go_back(self) -> None:
        self._dispatch(NavigateToModelSelection())
