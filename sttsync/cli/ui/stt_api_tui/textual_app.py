"""Textual form for the STT API settings."""

from __future__ import annotations

from typing import Any, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Footer, Input, Label, Select, Static, Switch

from sttsync.core.config import ConfigManager
from sttsync.core.remote_service import LocalConfigService
from sttsync.core.store import SettingsStore
from sttsync.core.sync_controller import (
    API_KEY_FIELD,
    BASE_URL_FIELD,
    MODEL_FIELD,
    ConfigSyncController,
    MutationResult,
    SttApiView,
    SyncStatus,
)

_BUSY_MARKER = "saving..."


def _busy_marker(busy: bool) -> str:
    return _BUSY_MARKER if busy else ""


def _select_options(view: SttApiView) -> list[tuple[str, str]]:
    return [(choice.label, choice.value) for choice in view.provider_options]


def _result_message(result: MutationResult) -> Optional[str]:
    """Status line text for a finished mutation; None when nothing to report."""
    label = result.field.replace("_", " ")
    if result.status == SyncStatus.APPLIED:
        return f"Saved {label}."
    if result.status == SyncStatus.FAILED:
        return f"Could not save {label}: {result.error or 'unknown error'}"
    return None


class SttApiSettingsApp(App[None]):
    CSS = """
    #title {
        text-style: bold;
        padding: 1 1 0 1;
    }

    .row {
        height: auto;
        padding: 0 1;
    }

    .row Label {
        width: 12;
        padding: 1 0;
    }

    .row Input, .row Select {
        width: 1fr;
    }

    .busy {
        width: 10;
        color: $warning;
        padding: 1 1;
    }

    #status {
        color: $text-muted;
        padding: 1 1;
    }
    """

    BINDINGS = [
        ("escape", "close", "Close"),
    ]

    def __init__(self, config_manager: ConfigManager) -> None:
        super().__init__()
        self._config_manager = config_manager
        self._controller: Optional[ConfigSyncController] = None

    def compose(self) -> ComposeResult:
        yield Static("Speech-to-Text API", id="title")
        with VerticalScroll():
            with Horizontal(classes="row"):
                yield Label("Enabled")
                yield Switch(id="enabled_switch")
            with Horizontal(classes="row"):
                yield Label("Provider")
                yield Select([], id="provider_select", allow_blank=True)
            with Horizontal(classes="row"):
                yield Label("Base URL")
                yield Input(id="base_url_input")
                yield Static("", id="base_url_busy", classes="busy")
            with Horizontal(classes="row"):
                yield Label("API key")
                yield Input(id="api_key_input", password=True)
                yield Static("", id="api_key_busy", classes="busy")
            with Horizontal(classes="row"):
                yield Label("Model")
                yield Input(id="model_input")
                yield Static("", id="model_busy", classes="busy")
        yield Static("Press enter in a field to save; esc to close", id="status")
        yield Footer()

    async def on_mount(self) -> None:
        controller = ConfigSyncController(SettingsStore(), LocalConfigService(self._config_manager))
        await controller.load()
        self._controller = controller
        self.query_one("#provider_select", Select).set_options(_select_options(controller.view()))
        controller.add_listener(self._render_view)
        self._render_view(controller.view())

    def on_unmount(self) -> None:
        if self._controller is not None:
            self._controller.close()

    def on_switch_changed(self, event: Switch.Changed) -> None:
        controller = self._controller
        if controller is None or event.value == controller.enabled:
            return
        self._start(controller.toggle_enabled(event.value))

    def on_select_changed(self, event: Select.Changed) -> None:
        controller = self._controller
        if controller is None or event.value is Select.BLANK:
            return
        if event.value == controller.active_provider_id:
            return
        self._start(controller.select_provider(str(event.value)))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        controller = self._controller
        if controller is None:
            return
        if event.input.id == "base_url_input":
            self._start(controller.set_base_url(event.value))
        elif event.input.id == "api_key_input":
            self._start(controller.set_api_key(event.value))
        elif event.input.id == "model_input":
            self._start(controller.set_model(event.value))

    def action_close(self) -> None:
        self.exit()

    def _start(self, mutation: Any) -> None:
        self.run_worker(self._await_mutation(mutation), group="stt_api", exit_on_error=False)

    async def _await_mutation(self, mutation: Any) -> None:
        result: MutationResult = await mutation
        message = _result_message(result)
        if message:
            self.query_one("#status", Static).update(message)
        if self._controller is not None:
            self._render_view(self._controller.view())

    def _render_view(self, view: SttApiView) -> None:
        self.query_one("#enabled_switch", Switch).value = view.enabled
        select = self.query_one("#provider_select", Select)
        if view.active_provider_id and select.value != view.active_provider_id:
            select.value = view.active_provider_id

        base_url_input = self.query_one("#base_url_input", Input)
        base_url_input.disabled = not (
            view.active_provider is not None and view.active_provider.allow_base_url_edit
        )
        fields = {
            BASE_URL_FIELD: (base_url_input, view.base_url, view.is_base_url_updating),
            API_KEY_FIELD: (
                self.query_one("#api_key_input", Input),
                view.api_key,
                view.is_api_key_updating,
            ),
            MODEL_FIELD: (self.query_one("#model_input", Input), view.model, view.is_model_updating),
        }
        for field, (widget, value, busy) in fields.items():
            if not widget.has_focus:
                widget.value = value
            self.query_one(f"#{field}_busy", Static).update(_busy_marker(busy))


def run_stt_api_tui(config_manager: ConfigManager) -> bool:
    """Run the Textual STT API settings form."""
    app = SttApiSettingsApp(config_manager)
    app.run()
    return True
