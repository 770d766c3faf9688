"""
Search palette: case-insensitive substring search over containers and commands.

Containers are matched on name, image, id and their space-joined ports;
commands on their name and description. Results keep a stable order:
matching containers in list order first, then matching commands in table
order. An empty query matches everything.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from .model import ContainerRecord, ResultKind, SearchResult


@dataclass(frozen=True)
class PaletteCommand:
    key: str
    name: str
    description: str

    @property
    def label(self) -> str:
        return f"[{self.key}] {self.name}"


COMMANDS: Tuple[PaletteCommand, ...] = (
    PaletteCommand("s", "Start", "Start the selected container"),
    PaletteCommand("t", "Stop", "Stop the selected container"),
    PaletteCommand("R", "Restart", "Restart the selected container"),
    PaletteCommand("d", "Destroy", "Force-remove the selected container (asks first)"),
    PaletteCommand("i", "Inspect", "View detailed container information"),
    PaletteCommand("l", "Logs", "View container logs"),
    PaletteCommand("e", "Shell", "Open interactive shell in container"),
    PaletteCommand("o", "Browser", "Open container port in browser"),
    PaletteCommand("h", "Toggle K8s", "Show/hide Kubernetes system containers"),
    PaletteCommand("a", "Toggle Exited", "Show/hide exited containers"),
    PaletteCommand("r", "Refresh", "Refresh the container list"),
)


def container_detail(record: ContainerRecord) -> str:
    ports = ", ".join(record.ports) if record.ports else "no ports"
    return f"{record.id} | {record.image} | {ports} | {record.state.value}"


def _container_matches(record: ContainerRecord, needle: str) -> bool:
    haystacks = (record.name, record.image, record.id, " ".join(record.ports))
    return any(needle in h.lower() for h in haystacks)


def search(containers: Iterable[ContainerRecord], query: str,
           commands: Sequence[PaletteCommand] = COMMANDS) -> Tuple[SearchResult, ...]:
    needle = query.lower()
    results = []
    for record in containers:
        if not needle or _container_matches(record, needle):
            results.append(SearchResult(
                kind=ResultKind.CONTAINER,
                label=record.name,
                detail=container_detail(record),
                target=record.id,
            ))
    for command in commands:
        if not needle or needle in command.name.lower() or needle in command.description.lower():
            results.append(SearchResult(
                kind=ResultKind.COMMAND,
                label=command.label,
                detail=command.description,
                target=command.key,
            ))
    return tuple(results)
