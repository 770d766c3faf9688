"""
View state machine and state owner.

update(state, event) is a pure function returning the next AppState and the
requests (asynchronous work, timers, quit) the host must carry out. It never
performs I/O, which is what makes every transition testable without a
terminal or a daemon.

Architecture:
  - update(): dispatches on the event type through _EVENT_HANDLERS, then on
    the active ViewMode for key presses through _KEY_HANDLERS
  - StateManager: owns the current AppState and a version counter; the
    version only moves when a transition produced a different state, so the
    host can skip redundant redraws

Invariants kept by every transition:
  - containers == filter_containers(snapshot, hide_system, hide_exited)
  - cursor is inside containers (0 when empty)
  - exactly one ViewMode is active
  - a ShellSession exists only in SHELL mode
  - late results (inspect/logs after leaving List, exec output of a
    discarded session) are dropped

Status Messages:
  Every status change bumps status_serial. Transient messages schedule a
  StatusExpired carrying that serial; it only reverts the status to the
  container count if nothing newer replaced the message meanwhile.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from . import filtering, search, shell
from .messages import (
    ActionCompleted, ContainerAction, ContainersLoaded, ExecInShell, FetchLogs,
    InspectContainer, InspectLoaded, KeyPressed, LoadContainers, LogsLoaded,
    OpenBrowser, Pasted, Quit, Resized, ScheduleStatusClear, ScheduleTick,
    ShellOutput, StatusExpired, Tick, WheelScrolled,
)
from .model import (
    AppState, ContainerRecord, DestroyGuard, ResultKind, RuntimeOptions,
    SearchState, ViewMode,
)
from .ui import detail_page_height, list_capacity, max_detail_offset

logger = logging.getLogger(__name__)

Transition = Tuple[AppState, List[object]]

QUIT_KEYS = ("q", "ctrl+c")
UP_KEYS = ("up", "k")
DOWN_KEYS = ("down", "j")
WHEEL_STEP = 3


def count_text(count: int) -> str:
    return "1 container" if count == 1 else f"{count} containers"


def initial_state(connection_label: str = "", options: Optional[RuntimeOptions] = None) -> AppState:
    return AppState(connection_label=connection_label, options=options or RuntimeOptions())


def initial_requests(state: AppState) -> List[object]:
    return [LoadContainers(announce=False), ScheduleTick(state.options.refresh_interval)]


# --- helpers ----------------------------------------------------------------

def _with_status(state: AppState, text: str, delay: Optional[float] = None) -> Transition:
    serial = state.status_serial + 1
    state = replace(state, status=text, status_serial=serial)
    if delay is None:
        return state, []
    return state, [ScheduleStatusClear(delay, serial)]


def _destroy_prompt(guard: DestroyGuard) -> str:
    return f"Destroy container {guard.target_name} ({guard.target_id})? Press y to confirm, n to cancel"


def _notify(state: AppState, text: str, delay: Optional[float] = None) -> Transition:
    """Status update from a finished request.

    While a destroy confirmation is armed its prompt stays on screen after the
    outcome text and does not expire.
    """
    if state.destroy.pending:
        return _with_status(state, f"{text} | {_destroy_prompt(state.destroy)}")
    return _with_status(state, text, delay)


def _refilter(state: AppState, **changes) -> AppState:
    state = replace(state, **changes)
    visible = filtering.filter_containers(state.snapshot, state.hide_system, state.hide_exited)
    return replace(state, containers=visible, cursor=filtering.clamp_cursor(state.cursor, len(visible)))


def _move_cursor(state: AppState, delta: int) -> Transition:
    cursor = filtering.clamp_cursor(state.cursor + delta, len(state.containers))
    if cursor == state.cursor:
        return state, []
    return replace(state, cursor=cursor), []


def _scroll_detail(state: AppState, delta: int) -> Transition:
    offset = max(0, min(state.detail_offset + delta, max_detail_offset(state)))
    if offset == state.detail_offset:
        return state, []
    return replace(state, detail_offset=offset), []


def _back_to_list(state: AppState) -> Transition:
    return replace(
        state,
        mode=ViewMode.LIST,
        detail_title="",
        detail_text="",
        detail_offset=0,
        shell=None,
        search=SearchState(),
    ), []


def _require_selection(state: AppState) -> Tuple[Optional[ContainerRecord], Transition]:
    record = state.selected
    if record is None:
        return None, _with_status(state, "No container selected", state.options.status_clear_delay)
    return record, (state, [])


def first_mapped_port(record: ContainerRecord) -> Optional[int]:
    for port in record.ports:
        if ":" not in port:
            continue
        host = port.split(":", 1)[0].split("/", 1)[0]
        if host.isdigit() and int(host) > 0:
            return int(host)
    return None


# --- list mode --------------------------------------------------------------

def _lifecycle(action: str, progress: str) -> Callable[[AppState], Transition]:
    def handler(state: AppState) -> Transition:
        record, fallback = _require_selection(state)
        if record is None:
            return fallback
        state, requests = _with_status(state, progress)
        return state, requests + [ContainerAction(action, record.id, state.options.stop_timeout)]
    return handler


def _ask_destroy(state: AppState) -> Transition:
    record, fallback = _require_selection(state)
    if record is None:
        return fallback
    state = replace(state, destroy=DestroyGuard(pending=True, target_id=record.id, target_name=record.name))
    return _with_status(state, _destroy_prompt(state.destroy))


def _guard_key(state: AppState, name: str) -> Transition:
    guard = state.destroy
    if name == "y":
        state = replace(state, destroy=DestroyGuard())
        state, requests = _with_status(state, f"Destroying container {guard.target_name}...")
        return state, requests + [ContainerAction("destroy", guard.target_id, state.options.stop_timeout)]
    if name in ("n", "N", "escape"):
        state = replace(state, destroy=DestroyGuard())
        return _with_status(state, "Destroy cancelled", state.options.status_clear_delay)
    return state, []


def _inspect(state: AppState) -> Transition:
    record, fallback = _require_selection(state)
    if record is None:
        return fallback
    state, requests = _with_status(state, "Loading inspection data...")
    return state, requests + [InspectContainer(record.id)]


def _logs(state: AppState) -> Transition:
    record, fallback = _require_selection(state)
    if record is None:
        return fallback
    state, requests = _with_status(state, "Loading logs...")
    return state, requests + [FetchLogs(record.id, state.options.logs_tail)]


def _open_shell(state: AppState) -> Transition:
    record, fallback = _require_selection(state)
    if record is None:
        return fallback
    serial = state.session_serial + 1
    state = replace(
        state,
        mode=ViewMode.SHELL,
        session_serial=serial,
        shell=shell.open_session(record, serial),
    )
    logger.debug(f"Shell session {serial} opened for {record.id}")
    return _with_status(state, f"Opening shell in {record.name}...", state.options.status_clear_delay)


def _open_browser(state: AppState) -> Transition:
    record, fallback = _require_selection(state)
    if record is None:
        return fallback
    delay = state.options.status_clear_delay
    if not record.ports:
        return _with_status(state, "Container has no exposed ports", delay)
    port = first_mapped_port(record)
    if port is None:
        return _with_status(state, f"No mapped ports (have: {', '.join(record.ports)})", delay)
    state, requests = _with_status(state, "Opening browser...")
    return state, requests + [OpenBrowser(f"http://localhost:{port}")]


def _toggle_system(state: AppState) -> Transition:
    state = _refilter(state, hide_system=not state.hide_system)
    text = "Hiding Kubernetes containers" if state.hide_system else "Showing Kubernetes containers"
    return _with_status(state, text, state.options.status_clear_delay)


def _toggle_exited(state: AppState) -> Transition:
    state = _refilter(state, hide_exited=not state.hide_exited)
    text = "Hiding exited containers" if state.hide_exited else "Showing all containers (including exited)"
    return _with_status(state, text, state.options.status_clear_delay)


def _refresh(state: AppState) -> Transition:
    return state, [LoadContainers(announce=True)]


def _open_search(state: AppState) -> Transition:
    results = search.search(state.containers, "")
    return replace(state, mode=ViewMode.SEARCH, search=SearchState(results=results)), []


def _list_page(state: AppState, pages: int) -> Transition:
    return _move_cursor(state, pages * list_capacity(state.height))


LIST_ACTIONS: Dict[str, Callable[[AppState], Transition]] = {
    "up": lambda s: _move_cursor(s, -1),
    "k": lambda s: _move_cursor(s, -1),
    "down": lambda s: _move_cursor(s, 1),
    "j": lambda s: _move_cursor(s, 1),
    "pageup": lambda s: _list_page(s, -1),
    "pagedown": lambda s: _list_page(s, 1),
    "home": lambda s: _move_cursor(s, -len(s.containers)),
    "end": lambda s: _move_cursor(s, len(s.containers)),
    "r": _refresh,
    "f5": _refresh,
    "s": _lifecycle("start", "Starting container..."),
    "t": _lifecycle("stop", "Stopping container..."),
    "R": _lifecycle("restart", "Restarting container..."),
    "d": _ask_destroy,
    "i": _inspect,
    "l": _logs,
    "e": _open_shell,
    "x": _open_shell,
    "o": _open_browser,
    "h": _toggle_system,
    "a": _toggle_exited,
    "/": _open_search,
}


def _list_key(state: AppState, name: str) -> Transition:
    if state.destroy.pending:
        return _guard_key(state, name)
    if name in QUIT_KEYS:
        return state, [Quit()]
    action = LIST_ACTIONS.get(name)
    if action is None:
        return state, []
    return action(state)


# --- inspect / logs ---------------------------------------------------------

def _detail_key(state: AppState, name: str) -> Transition:
    page = detail_page_height(state.height)
    if name in ("escape", "q"):
        return _back_to_list(state)
    if name in UP_KEYS:
        return _scroll_detail(state, -1)
    if name in DOWN_KEYS:
        return _scroll_detail(state, 1)
    if name == "pageup":
        return _scroll_detail(state, -page)
    if name in ("pagedown", " "):
        return _scroll_detail(state, page)
    if name == "home":
        return _scroll_detail(state, -state.detail_offset)
    if name == "end":
        return _scroll_detail(state, max_detail_offset(state))
    return state, []


def _show_detail(state: AppState, mode: ViewMode, container_id: str, data: str,
                 error: Optional[str]) -> Transition:
    if state.mode != ViewMode.LIST:
        logger.debug(f"Dropping late {mode.value} result for {container_id}")
        return state, []
    if error:
        return _notify(state, f"Error: {error}")
    if state.destroy.pending:
        logger.debug(f"Dropping {mode.value} result for {container_id} while destroy confirmation is pending")
        return state, []
    record = next((c for c in state.snapshot if c.id == container_id), None)
    state = replace(
        state,
        mode=mode,
        detail_title=record.name if record else container_id,
        detail_text=data,
        detail_offset=0,
    )
    if mode == ViewMode.LOGS:
        # newest lines first on screen
        state = replace(state, detail_offset=max_detail_offset(state))
    return _with_status(state, "")


# --- shell ------------------------------------------------------------------

def _shell_key(state: AppState, name: str) -> Transition:
    session = state.shell
    if name == "escape" or session is None:
        return _back_to_list(state)
    if name == "enter":
        session, command = shell.commit(session)
        state = replace(state, shell=session)
        if command is None:
            return state, []
        return state, [ExecInShell(session.container_id, command, session.serial)]
    if name == "backspace":
        return replace(state, shell=shell.backspace(session)), []
    if len(name) == 1:
        return replace(state, shell=shell.type_text(session, name)), []
    return state, []


# --- search -----------------------------------------------------------------

def _requery(state: AppState, query: str) -> Transition:
    results = search.search(state.containers, query)
    return replace(state, search=SearchState(query=query, results=results, selected=0)), []


def _move_selection(state: AppState, delta: int) -> Transition:
    current = state.search
    selected = filtering.clamp_cursor(current.selected + delta, len(current.results))
    if selected == current.selected:
        return state, []
    return replace(state, search=replace(current, selected=selected)), []


def _choose_result(state: AppState) -> Transition:
    current = state.search
    if not current.results:
        return _with_status(state, "No matching results", state.options.status_clear_delay)
    result = current.results[filtering.clamp_cursor(current.selected, len(current.results))]
    state, _ = _back_to_list(state)
    if result.kind == ResultKind.CONTAINER:
        for index, record in enumerate(state.containers):
            if record.id == result.target:
                return replace(state, cursor=index), []
        return _with_status(state, "Container is no longer listed", state.options.status_clear_delay)
    return _list_key(state, result.target)


def _search_key(state: AppState, name: str) -> Transition:
    query = state.search.query
    if name == "escape":
        return _back_to_list(state)
    if name == "enter":
        return _choose_result(state)
    if name == "up":
        return _move_selection(state, -1)
    if name == "down":
        return _move_selection(state, 1)
    if name == "backspace":
        return _requery(state, query[:-1]) if query else (state, [])
    if len(name) == 1:
        return _requery(state, query + name)
    return state, []


_KEY_HANDLERS: Dict[ViewMode, Callable[[AppState, str], Transition]] = {
    ViewMode.LIST: _list_key,
    ViewMode.INSPECT: _detail_key,
    ViewMode.LOGS: _detail_key,
    ViewMode.SHELL: _shell_key,
    ViewMode.SEARCH: _search_key,
}


# --- event handlers ---------------------------------------------------------

def _on_key(state: AppState, event: KeyPressed) -> Transition:
    if event.key == "ctrl+c":
        return state, [Quit()]
    return _KEY_HANDLERS[state.mode](state, event.name)


def _on_paste(state: AppState, event: Pasted) -> Transition:
    if not event.text:
        return state, []
    if state.mode == ViewMode.SHELL and state.shell is not None:
        return replace(state, shell=shell.type_text(state.shell, event.text)), []
    if state.mode == ViewMode.SEARCH:
        return _requery(state, state.search.query + event.text)
    return state, []


def _on_resize(state: AppState, event: Resized) -> Transition:
    if (event.width, event.height) == (state.width, state.height):
        return state, []
    state = replace(state, width=event.width, height=event.height)
    if state.mode in (ViewMode.INSPECT, ViewMode.LOGS):
        state = replace(state, detail_offset=min(state.detail_offset, max_detail_offset(state)))
    return state, []


def _on_wheel(state: AppState, event: WheelScrolled) -> Transition:
    direction = 1 if event.delta > 0 else -1
    if state.mode == ViewMode.LIST and not state.destroy.pending:
        return _move_cursor(state, direction)
    if state.mode in (ViewMode.INSPECT, ViewMode.LOGS):
        return _scroll_detail(state, direction * WHEEL_STEP)
    if state.mode == ViewMode.SEARCH:
        return _move_selection(state, direction)
    return state, []


def _on_containers(state: AppState, event: ContainersLoaded) -> Transition:
    if event.error:
        logger.warning(event.error)
        state = replace(state, loading=False)
        return _notify(state, event.error, state.options.status_clear_delay)
    state = _refilter(state, snapshot=tuple(event.containers), loading=False)
    if state.mode == ViewMode.SEARCH:
        results = search.search(state.containers, state.search.query)
        selected = filtering.clamp_cursor(state.search.selected, len(results))
        state = replace(state, search=replace(state.search, results=results, selected=selected))
    if event.announce:
        return _notify(state, "Containers refreshed", state.options.refresh_notice_delay)
    if not state.status:
        return _with_status(state, count_text(len(state.containers)))
    return state, []


def _on_action(state: AppState, event: ActionCompleted) -> Transition:
    state, requests = _notify(state, event.message)
    if event.success and event.mutating:
        requests.append(LoadContainers(announce=False))
    return state, requests


def _on_inspect(state: AppState, event: InspectLoaded) -> Transition:
    return _show_detail(state, ViewMode.INSPECT, event.container_id, event.data, event.error)


def _on_logs(state: AppState, event: LogsLoaded) -> Transition:
    return _show_detail(state, ViewMode.LOGS, event.container_id, event.data, event.error)


def _on_shell_output(state: AppState, event: ShellOutput) -> Transition:
    session = state.shell
    if state.mode != ViewMode.SHELL or session is None or session.serial != event.session_serial:
        logger.debug(f"Dropping output of closed shell session {event.session_serial}")
        return state, []
    session = shell.apply_output(session, event.output, event.error, event.exec_handle)
    return replace(state, shell=session), []


def _on_status_expired(state: AppState, event: StatusExpired) -> Transition:
    if event.serial != state.status_serial or state.destroy.pending:
        return state, []
    return _with_status(state, count_text(len(state.containers)))


def _on_tick(state: AppState, event: Tick) -> Transition:
    return state, [LoadContainers(announce=False), ScheduleTick(state.options.refresh_interval)]


_EVENT_HANDLERS: Dict[type, Callable] = {
    KeyPressed: _on_key,
    Pasted: _on_paste,
    Resized: _on_resize,
    WheelScrolled: _on_wheel,
    ContainersLoaded: _on_containers,
    ActionCompleted: _on_action,
    InspectLoaded: _on_inspect,
    LogsLoaded: _on_logs,
    ShellOutput: _on_shell_output,
    StatusExpired: _on_status_expired,
    Tick: _on_tick,
}


def update(state: AppState, event) -> Transition:
    handler = _EVENT_HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unhandled event {type(event).__name__}")
    return handler(state, event)


class StateManager:
    """Owner of the current AppState with a version for differential rendering."""

    def __init__(self, state: Optional[AppState] = None):
        self._state = state or AppState()
        self._lock = threading.RLock()
        self._version = 0

    def get_version(self) -> int:
        with self._lock:
            return self._version

    def get_snapshot(self) -> AppState:
        with self._lock:
            return self._state

    def dispatch(self, event) -> List[object]:
        with self._lock:
            new_state, requests = update(self._state, event)
            if new_state is not self._state:
                self._state = new_state
                self._version += 1
            return requests
