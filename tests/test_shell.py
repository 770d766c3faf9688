from localcm import shell
from localcm.model import ContainerRecord, LifecycleState, ShellPhase

CONTAINER = ContainerRecord(id="abc123", name="web", image="nginx", status="Up",
                            state=LifecycleState.RUNNING)


def test_open_session_banner():
    session = shell.open_session(CONTAINER, serial=4)
    assert session.scrollback == (
        "Shell session for container: web",
        "Container ID: abc123",
        "",
        "Type commands and press ENTER to execute.",
        "",
    )
    assert session.phase == ShellPhase.IDLE
    assert session.serial == 4


def test_commit_echoes_and_waits():
    session = shell.type_text(shell.open_session(CONTAINER, 1), "ls -la")
    session, command = shell.commit(session)
    assert command == "ls -la"
    assert session.scrollback[-1] == "$ ls -la"
    assert session.pending_input == ""
    assert session.phase == ShellPhase.AWAITING


def test_commit_empty_input_is_noop():
    session = shell.open_session(CONTAINER, 1)
    assert shell.commit(session) == (session, None)


def test_commit_while_awaiting_keeps_input():
    session, _ = shell.commit(shell.type_text(shell.open_session(CONTAINER, 1), "sleep 5"))
    session = shell.type_text(session, "pwd")
    session, command = shell.commit(session)
    assert command is None
    assert session.pending_input == "pwd"
    assert session.scrollback[-1] == shell.BUSY_NOTICE
    again, _ = shell.commit(session)
    assert again.scrollback.count(shell.BUSY_NOTICE) == 1


def test_apply_output_appends_lines_and_separator():
    session, _ = shell.commit(shell.type_text(shell.open_session(CONTAINER, 1), "ls"))
    session = shell.apply_output(session, "a\nb\n\n", exec_handle="exec1")
    assert session.scrollback[-3:] == ("a", "b", "")
    assert session.phase == ShellPhase.IDLE
    assert session.exec_handle == "exec1"


def test_apply_error_keeps_session():
    session, _ = shell.commit(shell.type_text(shell.open_session(CONTAINER, 1), "ls"))
    session = shell.apply_output(session, error="failed to attach: boom")
    assert session.scrollback[-2:] == ("Error: failed to attach: boom", "")
    assert session.phase == ShellPhase.IDLE


def test_backspace():
    session = shell.type_text(shell.open_session(CONTAINER, 1), "ab")
    assert shell.backspace(session).pending_input == "a"
    empty = shell.open_session(CONTAINER, 1)
    assert shell.backspace(empty) is empty
