"""
Container runtime discovery.

Local runtimes expose the Docker API on different sockets. The resolver
walks an ordered candidate list and keeps the first daemon that answers a
ping; nothing more clever than "first responder wins" is attempted.

Candidate order:
  1. DOCKER_HOST (only when the variable is set)
  2. Docker Desktop, Rancher Desktop, Colima, Orbstack, Podman, Lima sockets

Error Handling:
  - Each failed candidate is closed, logged and recorded with its error
  - When every candidate fails, NoRuntimeError carries all attempts and the
    last error; format_failure() renders the message printed at startup
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import docker

from .model import ConnectionTarget

logger = logging.getLogger(__name__)

ENV_VAR = "DOCKER_HOST"


@dataclass
class Connection:
    client: Any
    label: str


class NoRuntimeError(Exception):
    """No candidate daemon answered."""

    def __init__(self, attempts: List[Tuple[str, str]], last_error: Optional[str]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(last_error or "no container runtime found")


def default_targets(home: Optional[str] = None, uid: Optional[int] = None) -> List[ConnectionTarget]:
    home = home if home is not None else str(Path.home())
    uid = uid if uid is not None else os.getuid()

    def sock(*parts: str) -> str:
        return "unix://" + os.path.join(home, *parts)

    return [
        ConnectionTarget("DOCKER_HOST"),
        ConnectionTarget("Docker Desktop", "unix:///var/run/docker.sock"),
        ConnectionTarget("Rancher Desktop", sock(".rd", "docker.sock")),
        ConnectionTarget("Rancher Desktop", sock(".docker", "run", "docker.sock")),
        ConnectionTarget("Colima", sock(".colima", "default", "docker.sock")),
        ConnectionTarget("Colima", sock(".colima", "docker.sock")),
        ConnectionTarget("Orbstack", sock(".orbstack", "run", "docker.sock")),
        ConnectionTarget("Podman", sock(".local", "share", "containers", "podman", "machine", "podman.sock")),
        ConnectionTarget("Podman", sock(".local", "share", "containers", "podman", "machine", "qemu", "podman.sock")),
        ConnectionTarget("Podman", f"unix:///run/user/{uid}/podman/podman.sock"),
        ConnectionTarget("Lima", sock(".lima", "default", "sock", "docker.sock")),
    ]


def open_client(target: ConnectionTarget, environ: Mapping[str, str], timeout: float):
    if target.from_environment:
        return docker.from_env(environment=dict(environ), version="auto", timeout=timeout)
    return docker.DockerClient(base_url=target.address, version="auto", timeout=timeout)


def _close_quietly(client: Any) -> None:
    if client is None:
        return
    try:
        client.close()
    except Exception as e:
        logger.debug(f"Ignoring error while closing probe client: {e}")


def resolve_connection(
    targets: Optional[Sequence[ConnectionTarget]] = None,
    environ: Optional[Mapping[str, str]] = None,
    client_factory: Callable[..., Any] = open_client,
    probe_timeout: float = 3.0,
    request_timeout: float = 60.0,
) -> Connection:
    """Return a connection to the first candidate that answers a ping."""
    environ = os.environ if environ is None else environ
    targets = default_targets() if targets is None else targets
    attempts: List[Tuple[str, str]] = []
    last_error: Optional[str] = None

    for target in targets:
        if target.from_environment:
            value = environ.get(ENV_VAR, "")
            if not value:
                attempts.append((target.display_name, "not set"))
                continue
            label = f"{ENV_VAR} ({value})"
        else:
            label = target.display_name

        client = None
        try:
            client = client_factory(target, environ, probe_timeout)
            client.ping()
        except Exception as e:
            last_error = f"{label}: {e}"
            attempts.append((label, str(e)))
            logger.debug(f"Runtime candidate {label} at {target.address or 'env'} failed: {e}")
            _close_quietly(client)
            continue

        client.api.timeout = request_timeout
        logger.info(f"Connected to {label}")
        return Connection(client=client, label=label)

    raise NoRuntimeError(attempts, last_error)


def format_failure(error: NoRuntimeError) -> str:
    lines = ["Could not connect to a container runtime. Tried:"]
    for label, reason in error.attempts:
        lines.append(f"  - {label}: {reason}")
    lines.append("")
    lines.append(f"Error: {error.last_error or 'no candidate available'}")
    lines.append("")
    lines.append("Please ensure one of the above container runtimes is running.")
    return "\n".join(lines)
