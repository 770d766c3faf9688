"""
Request executor.

The state machine only describes work (messages.Request); EffectRunner does
it. perform() is synchronous and blocking and is always called from a worker
thread by the Textual host. Every request yields exactly one completion
event, failures included: docker_safe logs the exception with its traceback
and converts it into the failure form of that request's event.

Timer and quit requests are handled by the host and never reach this module.
"""

import functools
import logging
import platform
import subprocess
from typing import Any, Callable, List, Optional

from .backend import DockerBackend
from .messages import (
    ActionCompleted, ContainerAction, ContainersLoaded, ExecInShell, FetchLogs,
    InspectContainer, InspectLoaded, LoadContainers, LogsLoaded, OpenBrowser,
    ShellOutput,
)

logger = logging.getLogger(__name__)

ACTION_VERBS = {
    "start": ("Started", "start"),
    "stop": ("Stopped", "stop"),
    "restart": ("Restarted", "restart"),
    "destroy": ("Destroyed", "destroy"),
}


def describe_error(error: Exception) -> str:
    """Short daemon error text (APIError carries the daemon's own explanation)."""
    explanation = getattr(error, "explanation", None)
    if explanation:
        return str(explanation)
    return str(error) or error.__class__.__name__


def docker_safe(on_error: Callable[[Any, Exception], Any]) -> Callable:
    """
    Decorator for request handlers that ensures safe error handling.

    Catches exceptions, logs them, and returns the failure event built by
    on_error(request, exception) so a failed request still completes.

    Usage:
        @docker_safe(on_error=lambda r, e: LogsLoaded(r.container_id, error=describe_error(e)))
        def _fetch_logs(self, request):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, request) -> Any:
            try:
                return func(self, request)
            except Exception as e:
                logger.error(f"Docker operation failed in {func.__name__}: {e}", exc_info=True)
                return on_error(request, e)
        return wrapper
    return decorator


def browser_command(url: str, system: Optional[str] = None) -> Optional[List[str]]:
    system = system or platform.system()
    if system == "Darwin":
        return ["open", url]
    if system == "Linux":
        return ["xdg-open", url]
    if system == "Windows":
        return ["rundll32", "url.dll,FileProtocolHandler", url]
    return None


def open_url(command: List[str]) -> None:
    """Launch the browser without waiting for it."""
    subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def _action_failed(request: ContainerAction, error: Exception) -> ActionCompleted:
    verb = ACTION_VERBS.get(request.action, ("", request.action))[1]
    return ActionCompleted(False, f"Failed to {verb}: {describe_error(error)}", mutating=True)


class EffectRunner:
    def __init__(self, backend: DockerBackend, opener: Callable[[List[str]], None] = open_url,
                 system: Optional[str] = None):
        self.backend = backend
        self.opener = opener
        self.system = system
        self._handlers = {
            LoadContainers: self._load_containers,
            ContainerAction: self._container_action,
            InspectContainer: self._inspect,
            FetchLogs: self._fetch_logs,
            ExecInShell: self._exec,
            OpenBrowser: self._open_browser,
        }

    def perform(self, request):
        handler = self._handlers.get(type(request))
        if handler is None:
            raise TypeError(f"EffectRunner cannot perform {type(request).__name__}")
        return handler(request)

    @docker_safe(on_error=lambda r, e: ContainersLoaded(
        error=f"Failed to list containers: {describe_error(e)}", announce=r.announce))
    def _load_containers(self, request: LoadContainers) -> ContainersLoaded:
        records = self.backend.list_containers()
        return ContainersLoaded(containers=tuple(records), announce=request.announce)

    @docker_safe(on_error=_action_failed)
    def _container_action(self, request: ContainerAction) -> ActionCompleted:
        if request.action == "start":
            self.backend.start(request.container_id)
        elif request.action == "stop":
            self.backend.stop(request.container_id, timeout=request.timeout)
        elif request.action == "restart":
            self.backend.restart(request.container_id, timeout=request.timeout)
        elif request.action == "destroy":
            self.backend.destroy(request.container_id)
        else:
            raise ValueError(f"unknown action {request.action!r}")
        done = ACTION_VERBS[request.action][0]
        logger.info(f"{done} container {request.container_id}")
        return ActionCompleted(True, f"{done} container {request.container_id}", mutating=True)

    @docker_safe(on_error=lambda r, e: InspectLoaded(r.container_id, error=describe_error(e)))
    def _inspect(self, request: InspectContainer) -> InspectLoaded:
        return InspectLoaded(request.container_id, data=self.backend.inspect(request.container_id))

    @docker_safe(on_error=lambda r, e: LogsLoaded(r.container_id, error=describe_error(e)))
    def _fetch_logs(self, request: FetchLogs) -> LogsLoaded:
        data = self.backend.get_logs(request.container_id, tail=request.tail)
        return LogsLoaded(request.container_id, data=data)

    @docker_safe(on_error=lambda r, e: ShellOutput(r.session_serial, r.command, error=describe_error(e)))
    def _exec(self, request: ExecInShell) -> ShellOutput:
        exec_id, output = self.backend.exec_in_container(
            request.container_id, request.command, shell=request.shell
        )
        return ShellOutput(request.session_serial, request.command, output=output, exec_handle=exec_id)

    @docker_safe(on_error=lambda r, e: ActionCompleted(False, f"Failed to open browser: {e}"))
    def _open_browser(self, request: OpenBrowser) -> ActionCompleted:
        command = browser_command(request.url, self.system)
        if command is None:
            return ActionCompleted(False, "Unsupported operating system")
        self.opener(command)
        return ActionCompleted(True, f"Opened {request.url} in browser")
