"""
Events consumed by the state machine and requests it emits.

Events are everything that can happen to the application: terminal input,
timer expiry and the single completion event produced by every request.
Requests are pure descriptions of asynchronous work; the host hands them to
the EffectRunner, which performs them off the UI loop and answers with an
event.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .model import ContainerRecord


# --- events -----------------------------------------------------------------

@dataclass(frozen=True)
class KeyPressed:
    key: str
    character: Optional[str] = None

    @property
    def name(self) -> str:
        """Printable keys by their character, everything else by key name."""
        if self.character and len(self.character) == 1 and self.character.isprintable():
            return self.character
        return self.key


@dataclass(frozen=True)
class Pasted:
    text: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class WheelScrolled:
    delta: int  # negative: up


@dataclass(frozen=True)
class ContainersLoaded:
    containers: Tuple[ContainerRecord, ...] = ()
    error: Optional[str] = None
    announce: bool = False


@dataclass(frozen=True)
class ActionCompleted:
    success: bool
    message: str
    mutating: bool = False


@dataclass(frozen=True)
class InspectLoaded:
    container_id: str
    data: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class LogsLoaded:
    container_id: str
    data: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class ShellOutput:
    session_serial: int
    command: str
    output: str = ""
    error: Optional[str] = None
    exec_handle: Optional[str] = None


@dataclass(frozen=True)
class StatusExpired:
    serial: int


@dataclass(frozen=True)
class Tick:
    pass


Event = Union[
    KeyPressed, Pasted, Resized, WheelScrolled, ContainersLoaded, ActionCompleted,
    InspectLoaded, LogsLoaded, ShellOutput, StatusExpired, Tick,
]


# --- requests ---------------------------------------------------------------

@dataclass(frozen=True)
class LoadContainers:
    announce: bool = False


@dataclass(frozen=True)
class ContainerAction:
    action: str  # start | stop | restart | destroy
    container_id: str
    timeout: int = 10


@dataclass(frozen=True)
class InspectContainer:
    container_id: str


@dataclass(frozen=True)
class FetchLogs:
    container_id: str
    tail: int = 100


@dataclass(frozen=True)
class ExecInShell:
    container_id: str
    command: str
    session_serial: int
    shell: str = "/bin/sh"


@dataclass(frozen=True)
class OpenBrowser:
    url: str


@dataclass(frozen=True)
class ScheduleStatusClear:
    delay: float
    serial: int


@dataclass(frozen=True)
class ScheduleTick:
    delay: float


@dataclass(frozen=True)
class Quit:
    pass


Request = Union[
    LoadContainers, ContainerAction, InspectContainer, FetchLogs, ExecInShell,
    OpenBrowser, ScheduleStatusClear, ScheduleTick, Quit,
]
