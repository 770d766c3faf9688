"""Container visibility filters and cursor clamping."""

from typing import Iterable, Tuple

from .model import ContainerRecord, LifecycleState

SYSTEM_PREFIX = "k8s_"


def filter_containers(snapshot: Iterable[ContainerRecord], hide_system: bool,
                      hide_exited: bool) -> Tuple[ContainerRecord, ...]:
    """Drop Kubernetes-managed and/or exited containers, keeping snapshot order."""
    visible = []
    for record in snapshot:
        if hide_system and record.name.startswith(SYSTEM_PREFIX):
            continue
        if hide_exited and record.state == LifecycleState.EXITED:
            continue
        visible.append(record)
    return tuple(visible)


def clamp_cursor(cursor: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(cursor, length - 1))
