import pytest
from unittest.mock import MagicMock

from localcm.backend import ExecError
from localcm.effects import EffectRunner, browser_command, describe_error
from localcm.messages import (
    ActionCompleted, ContainerAction, ContainersLoaded, ExecInShell, FetchLogs,
    InspectContainer, InspectLoaded, LoadContainers, LogsLoaded, OpenBrowser,
    ScheduleTick, ShellOutput,
)


@pytest.fixture
def backend():
    return MagicMock()


@pytest.fixture
def opener():
    return MagicMock()


@pytest.fixture
def runner(backend, opener):
    return EffectRunner(backend, opener=opener, system="Linux")


def test_load_containers(runner, backend):
    backend.list_containers.return_value = ["rec"]
    event = runner.perform(LoadContainers(announce=True))
    assert event == ContainersLoaded(containers=("rec",), announce=True)


def test_load_failure_becomes_event(runner, backend):
    backend.list_containers.side_effect = ConnectionError("socket closed")
    event = runner.perform(LoadContainers())
    assert isinstance(event, ContainersLoaded)
    assert event.error == "Failed to list containers: socket closed"


def test_start_success(runner, backend):
    event = runner.perform(ContainerAction("start", "abc"))
    backend.start.assert_called_once_with("abc")
    assert event == ActionCompleted(True, "Started container abc", mutating=True)


def test_stop_and_restart_pass_timeout(runner, backend):
    runner.perform(ContainerAction("stop", "abc", timeout=10))
    runner.perform(ContainerAction("restart", "abc", timeout=10))
    backend.stop.assert_called_once_with("abc", timeout=10)
    backend.restart.assert_called_once_with("abc", timeout=10)


def test_action_failure_message(runner, backend):
    backend.destroy.side_effect = RuntimeError("conflict")
    event = runner.perform(ContainerAction("destroy", "abc"))
    assert event.success is False
    assert event.message == "Failed to destroy: conflict"


def test_api_error_explanation_is_used():
    error = RuntimeError("500 Server Error")
    error.explanation = "container is paused"
    assert describe_error(error) == "container is paused"


def test_inspect_and_logs(runner, backend):
    backend.inspect.return_value = "{}"
    backend.get_logs.return_value = "hello"
    assert runner.perform(InspectContainer("abc")) == InspectLoaded("abc", data="{}")
    assert runner.perform(FetchLogs("abc", tail=100)) == LogsLoaded("abc", data="hello")
    backend.get_logs.assert_called_once_with("abc", tail=100)


def test_logs_failure(runner, backend):
    backend.get_logs.side_effect = RuntimeError("no such container")
    assert runner.perform(FetchLogs("abc")).error == "no such container"


def test_exec_success_and_failure(runner, backend):
    backend.exec_in_container.return_value = ("e1", "out\n")
    event = runner.perform(ExecInShell("abc", "ls", session_serial=3))
    assert event == ShellOutput(3, "ls", output="out\n", exec_handle="e1")
    backend.exec_in_container.assert_called_once_with("abc", "ls", shell="/bin/sh")

    backend.exec_in_container.side_effect = ExecError("failed to attach: gone")
    event = runner.perform(ExecInShell("abc", "ls", session_serial=3))
    assert event.error == "failed to attach: gone"


def test_browser_commands():
    assert browser_command("http://x", "Darwin") == ["open", "http://x"]
    assert browser_command("http://x", "Linux") == ["xdg-open", "http://x"]
    assert browser_command("http://x", "Windows") == ["rundll32", "url.dll,FileProtocolHandler", "http://x"]
    assert browser_command("http://x", "Plan9") is None


def test_open_browser(runner, opener):
    event = runner.perform(OpenBrowser("http://localhost:8080"))
    opener.assert_called_once_with(["xdg-open", "http://localhost:8080"])
    assert event == ActionCompleted(True, "Opened http://localhost:8080 in browser")


def test_open_browser_spawn_failure(runner, opener):
    opener.side_effect = FileNotFoundError("xdg-open")
    event = runner.perform(OpenBrowser("http://localhost:1"))
    assert event.success is False
    assert event.message.startswith("Failed to open browser:")


def test_unsupported_os(backend, opener):
    event = EffectRunner(backend, opener=opener, system="Plan9").perform(OpenBrowser("http://x"))
    assert event == ActionCompleted(False, "Unsupported operating system")
    opener.assert_not_called()


def test_timer_requests_are_not_effects(runner):
    with pytest.raises(TypeError):
        runner.perform(ScheduleTick(1.0))
