import asyncio

import pytest
from unittest.mock import MagicMock

from localcm import textual_app
from localcm.connection import Connection, NoRuntimeError
from localcm.effects import EffectRunner
from localcm.model import ContainerRecord, LifecycleState, ViewMode
from localcm.textual_app import LcmApp


def rec(id, name):
    return ContainerRecord(id=id, name=name, image="nginx", status="Up",
                           state=LifecycleState.RUNNING, ports=("8080:80/tcp",))


@pytest.fixture
def backend():
    backend = MagicMock()
    backend.list_containers.return_value = [rec("abc123", "web"), rec("def456", "db")]
    backend.exec_in_container.return_value = ("exec1", "hello\n")
    return backend


@pytest.fixture
def app(backend):
    return LcmApp(Connection(MagicMock(), "Test Runtime"), effects=EffectRunner(backend, opener=MagicMock()))


def test_loads_navigates_and_quits(app, mocker):
    exit_spy = mocker.spy(app, "exit")

    async def scenario():
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause(0.3)
            state = app.store.get_snapshot()
            assert [c.name for c in state.containers] == ["web", "db"]
            assert (state.width, state.height) == (120, 40)
            await pilot.press("j")
            assert app.store.get_snapshot().cursor == 1
            await pilot.press("q")

    asyncio.run(scenario())
    assert exit_spy.called


def test_shell_round_trip_through_worker(app, backend):
    async def scenario():
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause(0.3)
            await pilot.press("e")
            assert app.store.get_snapshot().mode == ViewMode.SHELL
            await pilot.press("l", "s", "enter")
            await pilot.pause(0.3)
            session = app.store.get_snapshot().shell
            assert "hello" in session.scrollback
            await pilot.press("escape")
            assert app.store.get_snapshot().mode == ViewMode.LIST

    asyncio.run(scenario())
    backend.exec_in_container.assert_called_once_with("abc123", "ls", shell="/bin/sh")


def test_ctrl_c_quits_while_destroy_pending(app, backend, mocker):
    exit_spy = mocker.spy(app, "exit")

    async def scenario():
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause(0.3)
            await pilot.press("d")
            assert app.store.get_snapshot().destroy.pending
            await pilot.press("ctrl+c")

    asyncio.run(scenario())
    assert exit_spy.called
    backend.destroy.assert_not_called()


def test_run_exits_when_no_runtime(mocker, capsys):
    mocker.patch.object(textual_app, "setup_logging")
    mocker.patch.object(textual_app.config_manager, "load_config")
    mocker.patch.object(
        textual_app, "resolve_connection",
        side_effect=NoRuntimeError([("Colima", "missing socket")], "Colima: missing socket"),
    )
    with pytest.raises(SystemExit) as info:
        textual_app.run()
    assert info.value.code == 1
    err = capsys.readouterr().err
    assert "Colima: missing socket" in err
    assert "Please ensure one of the above container runtimes is running." in err


def test_run_closes_client_after_app(mocker):
    mocker.patch.object(textual_app, "setup_logging")
    mocker.patch.object(textual_app.config_manager, "load_config")
    client = MagicMock()
    mocker.patch.object(textual_app, "resolve_connection", return_value=Connection(client, "Lima"))
    run = mocker.patch.object(LcmApp, "run")
    textual_app.run()
    run.assert_called_once()
    client.close.assert_called_once()
