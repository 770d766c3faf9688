"""
Remote shell session controller.

A session is a scrollback buffer plus one line of pending input. Each
committed line becomes exactly one exec request; the session waits in the
AWAITING phase until the matching output arrives. Output and failures are
both appended to the scrollback and never end the session.

Lifecycle:
  open_session -> IDLE
  commit (non-empty input) -> AWAITING, command returned for execution
  apply_output -> IDLE
  commit while AWAITING -> input kept, busy notice appended, nothing issued
"""

from dataclasses import replace
from typing import Optional, Tuple

from .model import ContainerRecord, ShellPhase, ShellSession

PROMPT = "$ "
BUSY_NOTICE = "(previous command still running, input kept)"


def banner(container: ContainerRecord) -> Tuple[str, ...]:
    return (
        f"Shell session for container: {container.name}",
        f"Container ID: {container.id}",
        "",
        "Type commands and press ENTER to execute.",
        "",
    )


def open_session(container: ContainerRecord, serial: int) -> ShellSession:
    return ShellSession(
        container_id=container.id,
        container_name=container.name,
        serial=serial,
        scrollback=banner(container),
    )


def type_text(session: ShellSession, text: str) -> ShellSession:
    if not text:
        return session
    return replace(session, pending_input=session.pending_input + text)


def backspace(session: ShellSession) -> ShellSession:
    if not session.pending_input:
        return session
    return replace(session, pending_input=session.pending_input[:-1])


def commit(session: ShellSession) -> Tuple[ShellSession, Optional[str]]:
    """Submit the pending input; returns the command to run, if any."""
    command = session.pending_input
    if not command:
        return session, None
    if session.phase == ShellPhase.AWAITING:
        if session.scrollback and session.scrollback[-1] == BUSY_NOTICE:
            return session, None
        return replace(session, scrollback=session.scrollback + (BUSY_NOTICE,)), None
    session = replace(
        session,
        scrollback=session.scrollback + (PROMPT + command,),
        pending_input="",
        phase=ShellPhase.AWAITING,
    )
    return session, command


def apply_output(session: ShellSession, output: str = "", error: Optional[str] = None,
                 exec_handle: Optional[str] = None) -> ShellSession:
    if error:
        lines = (f"Error: {error}",)
    else:
        trimmed = output.rstrip("\r\n")
        lines = tuple(trimmed.split("\n")) if trimmed else ()
    return replace(
        session,
        scrollback=session.scrollback + lines + ("",),
        exec_handle=exec_handle or session.exec_handle,
        phase=ShellPhase.IDLE,
    )
