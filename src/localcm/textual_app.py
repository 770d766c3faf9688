"""Textual-based UI for localcm."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Static

from . import setup_logging
from .backend import DockerBackend
from .config import config_manager
from .connection import Connection, NoRuntimeError, format_failure, resolve_connection
from .effects import EffectRunner
from .messages import (
    KeyPressed, LoadContainers, Pasted, Quit, Resized, ScheduleStatusClear,
    ScheduleTick, StatusExpired, Tick, WheelScrolled,
)
from .model import ViewMode
from .overlays import render_search_overlay, render_shell_overlay
from .state import StateManager, initial_requests, initial_state
from .ui import render_detail_view, render_list_view

logger = logging.getLogger(__name__)

VIEW_RENDERERS = {
    ViewMode.LIST: render_list_view,
    ViewMode.INSPECT: render_detail_view,
    ViewMode.LOGS: render_detail_view,
    ViewMode.SHELL: render_shell_overlay,
    ViewMode.SEARCH: render_search_overlay,
}


class Delivered(Message):
    """Carries one state-machine event onto the app's message queue."""

    def __init__(self, event: Any) -> None:
        super().__init__()
        self.event = event


class Canvas(Static):
    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.app.post_message(Delivered(WheelScrolled(1)))
        event.stop()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.app.post_message(Delivered(WheelScrolled(-1)))
        event.stop()


class LcmApp(App[None]):
    TITLE = "localcm"

    CSS = """
    Screen {
      overflow: hidden;
    }

    #canvas {
      width: 100%;
      height: 100%;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "force_quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, connection: Connection, effects: Optional[EffectRunner] = None) -> None:
        super().__init__()
        self.connection = connection
        self.effects = effects or EffectRunner(DockerBackend(connection.client))
        options = config_manager.get_runtime_options()
        self.store = StateManager(initial_state(connection.label, options))
        self._rendered_version = -1
        self._load_in_flight = 0

    def compose(self) -> ComposeResult:
        yield Canvas("", id="canvas")

    def on_mount(self) -> None:
        self._dispatch(Resized(self.size.width, self.size.height))
        for request in initial_requests(self.store.get_snapshot()):
            self._submit(request)

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._dispatch(KeyPressed(event.key, event.character))

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self._dispatch(Pasted(event.text))

    def on_resize(self, event: events.Resize) -> None:
        self._dispatch(Resized(event.size.width, event.size.height))

    def on_delivered(self, message: Delivered) -> None:
        self._dispatch(message.event)

    def action_force_quit(self) -> None:
        self._dispatch(KeyPressed("ctrl+c"))

    def _dispatch(self, event: Any) -> None:
        for request in self.store.dispatch(event):
            self._submit(request)
        self._render()

    def _submit(self, request: Any) -> None:
        if isinstance(request, Quit):
            self.exit()
        elif isinstance(request, ScheduleTick):
            self.set_timer(request.delay, lambda: self.post_message(Delivered(Tick())))
        elif isinstance(request, ScheduleStatusClear):
            serial = request.serial
            self.set_timer(request.delay, lambda: self.post_message(Delivered(StatusExpired(serial))))
        elif isinstance(request, LoadContainers) and not request.announce and self._load_in_flight:
            logger.debug("Skipping background refresh, previous one still running")
        else:
            self.run_worker(self._perform(request), group="daemon", thread=False)

    async def _perform(self, request: Any) -> None:
        loading = isinstance(request, LoadContainers)
        if loading:
            self._load_in_flight += 1
        try:
            event = await self._run_backend(self.effects.perform, request)
        finally:
            if loading:
                self._load_in_flight -= 1
        self.post_message(Delivered(event))

    async def _run_backend(self, func: Any, *args: Any) -> Any:
        return await asyncio.to_thread(func, *args)

    def _render(self) -> None:
        version = self.store.get_version()
        if version == self._rendered_version:
            return
        self._rendered_version = version
        state = self.store.get_snapshot()
        self.query_one("#canvas", Canvas).update(VIEW_RENDERERS[state.mode](state))


def run() -> None:
    config_manager.load_config()
    log_config = config_manager.get_config().logging
    setup_logging(
        config_manager.get_log_level(),
        config_manager.get_custom_log_path(),
        log_config.max_size_mb,
        log_config.backup_count,
    )

    try:
        connection = resolve_connection(
            probe_timeout=config_manager.get_probe_timeout(),
            request_timeout=config_manager.get_request_timeout(),
        )
    except NoRuntimeError as e:
        logger.error(f"No container runtime reachable: {e}")
        print(format_failure(e), file=sys.stderr)
        sys.exit(1)

    app = LcmApp(connection)
    try:
        app.run()
    finally:
        connection.client.close()
