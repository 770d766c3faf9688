"""
Docker API wrapper and container snapshot builder.

This module provides a thin, synchronous interface to the daemon via the
docker-py library. Every call here blocks on the network, so callers run
them in worker threads (see effects.py); nothing in this module touches the
UI.

Operations:
  - list_containers: full snapshot (stopped containers included)
  - start / stop / restart / destroy: lifecycle actions
  - inspect: pretty-printed JSON of the container
  - get_logs: last N lines of stdout+stderr
  - exec_in_container: run one shell command, return its combined output

Error Handling:
  Methods raise; they never hide daemon failures. effects.docker_safe turns
  exceptions into completion events so the UI can show them. Exec failures
  are wrapped in ExecError naming the phase that failed.
"""

import json
import logging
from typing import Any, Dict, List, Tuple

from .model import ContainerRecord, LifecycleState

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 12


class ExecError(Exception):
    """Creating or attaching to an exec instance failed."""


def format_port(port: Dict[str, Any]) -> str:
    private = port.get("PrivatePort")
    proto = port.get("Type", "tcp")
    public = port.get("PublicPort")
    if public:
        return f"{public}:{private}/{proto}"
    return f"{private}/{proto}"


def build_record(raw: Dict[str, Any]) -> ContainerRecord:
    """Map one entry of the daemon's container list to a ContainerRecord."""
    names = raw.get("Names") or []
    name = names[0] if names else ""
    if name.startswith("/"):
        name = name[1:]
    return ContainerRecord(
        id=(raw.get("Id") or "")[:SHORT_ID_LENGTH],
        name=name,
        image=raw.get("Image", ""),
        status=raw.get("Status", ""),
        state=LifecycleState.from_raw(raw.get("State")),
        ports=tuple(format_port(p) for p in raw.get("Ports") or []),
    )


class DockerBackend:
    def __init__(self, client):
        self.client = client

    def list_containers(self) -> List[ContainerRecord]:
        raw = self.client.api.containers(all=True)
        return [build_record(r) for r in raw]

    def start(self, container_id: str) -> None:
        self.client.containers.get(container_id).start()

    def stop(self, container_id: str, timeout: int = 10) -> None:
        self.client.containers.get(container_id).stop(timeout=timeout)

    def restart(self, container_id: str, timeout: int = 10) -> None:
        self.client.containers.get(container_id).restart(timeout=timeout)

    def destroy(self, container_id: str) -> None:
        self.client.containers.get(container_id).remove(force=True)

    def inspect(self, container_id: str) -> str:
        data = self.client.api.inspect_container(container_id)
        return json.dumps(data, indent=2, default=str)

    def get_logs(self, container_id: str, tail: int = 100) -> str:
        raw = self.client.containers.get(container_id).logs(
            stdout=True, stderr=True, tail=tail
        )
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def exec_in_container(self, container_id: str, command: str,
                          shell: str = "/bin/sh") -> Tuple[str, str]:
        """Run `shell -c command` and return (exec id, combined output)."""
        try:
            created = self.client.api.exec_create(
                container_id, [shell, "-c", command], stdout=True, stderr=True, tty=False
            )
        except Exception as e:
            raise ExecError(f"failed to create exec: {e}") from e

        exec_id = created.get("Id", "") if isinstance(created, dict) else str(created)
        try:
            output = self.client.api.exec_start(exec_id, tty=False, demux=False)
        except Exception as e:
            raise ExecError(f"failed to attach: {e}") from e

        logger.debug(f"exec {exec_id[:12]} in {container_id}: {command!r}")
        if isinstance(output, bytes):
            return exec_id, output.decode("utf-8", errors="replace")
        return exec_id, output or ""
