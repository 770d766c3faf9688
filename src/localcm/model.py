"""
Data models and structures for localcm application state.

This module defines frozen dataclasses that represent daemon resources and
application state. The state machine never mutates them: every transition
builds new values with dataclasses.replace, which keeps update() pure and
makes "did anything change?" a cheap identity check.

Data Classes:
  - ConnectionTarget: One candidate daemon endpoint (label + address)
  - ContainerRecord: One container from the latest snapshot
  - ShellSession: Scrollback and pending input of the remote shell overlay
  - SearchResult / SearchState: Search palette results and selection
  - DestroyGuard: Pending two-step destroy confirmation
  - RuntimeOptions: Tunables loaded from configuration
  - AppState: Complete application state

AppState Structure:
  - mode: exactly one ViewMode is active
  - snapshot: all records from the latest successful list call
  - containers: snapshot filtered by hide_system / hide_exited
  - cursor: index into containers (0 when empty)
  - status / status_serial: status line text and its revision
  - detail_text / detail_offset: Inspect or Logs payload and scroll offset
  - shell, search, destroy: per-mode sub-states
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class ConnectionTarget:
    display_name: str
    address: str = ""  # empty: take the endpoint from DOCKER_HOST

    @property
    def from_environment(self) -> bool:
        return not self.address


class LifecycleState(str, Enum):
    CREATED = "created"
    RESTARTING = "restarting"
    RUNNING = "running"
    REMOVING = "removing"
    PAUSED = "paused"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "LifecycleState":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ContainerRecord:
    id: str
    name: str
    image: str
    status: str
    state: LifecycleState
    ports: Tuple[str, ...] = ()


class ViewMode(Enum):
    LIST = "list"
    INSPECT = "inspect"
    LOGS = "logs"
    SHELL = "shell"
    SEARCH = "search"


class ShellPhase(Enum):
    IDLE = "idle"
    AWAITING = "awaiting"


@dataclass(frozen=True)
class ShellSession:
    container_id: str
    container_name: str
    serial: int
    scrollback: Tuple[str, ...] = ()
    pending_input: str = ""
    exec_handle: Optional[str] = None
    phase: ShellPhase = ShellPhase.IDLE


class ResultKind(Enum):
    CONTAINER = "container"
    COMMAND = "command"


@dataclass(frozen=True)
class SearchResult:
    kind: ResultKind
    label: str
    detail: str
    target: str  # container id or command key


@dataclass(frozen=True)
class SearchState:
    query: str = ""
    results: Tuple[SearchResult, ...] = ()
    selected: int = 0


@dataclass(frozen=True)
class DestroyGuard:
    pending: bool = False
    target_id: str = ""
    target_name: str = ""


@dataclass(frozen=True)
class RuntimeOptions:
    refresh_interval: float = 1.0
    status_clear_delay: float = 3.0
    refresh_notice_delay: float = 2.0
    stop_timeout: int = 10
    logs_tail: int = 100


@dataclass(frozen=True)
class AppState:
    mode: ViewMode = ViewMode.LIST
    snapshot: Tuple[ContainerRecord, ...] = ()
    containers: Tuple[ContainerRecord, ...] = ()
    cursor: int = 0
    hide_system: bool = True
    hide_exited: bool = True
    loading: bool = True
    status: str = ""
    status_serial: int = 0
    connection_label: str = ""
    width: int = 80
    height: int = 24
    detail_title: str = ""
    detail_text: str = ""
    detail_offset: int = 0
    shell: Optional[ShellSession] = None
    session_serial: int = 0
    search: SearchState = field(default_factory=SearchState)
    destroy: DestroyGuard = field(default_factory=DestroyGuard)
    options: RuntimeOptions = field(default_factory=RuntimeOptions)

    @property
    def selected(self) -> Optional[ContainerRecord]:
        if 0 <= self.cursor < len(self.containers):
            return self.containers[self.cursor]
        return None
