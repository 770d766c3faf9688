import json

import pytest
from unittest.mock import MagicMock

from localcm.backend import DockerBackend, ExecError, build_record, format_port
from localcm.model import LifecycleState


@pytest.fixture
def client():
    return MagicMock()


RAW = {
    "Id": "0123456789abcdef0123",
    "Names": ["/web"],
    "Image": "nginx:latest",
    "State": "running",
    "Status": "Up 2 hours",
    "Ports": [
        {"PrivatePort": 80, "PublicPort": 8080, "Type": "tcp", "IP": "0.0.0.0"},
        {"PrivatePort": 443, "Type": "tcp"},
    ],
}


def test_format_port():
    assert format_port({"PrivatePort": 80, "PublicPort": 8080, "Type": "tcp"}) == "8080:80/tcp"
    assert format_port({"PrivatePort": 53, "Type": "udp"}) == "53/udp"


def test_build_record():
    record = build_record(RAW)
    assert record.id == "0123456789ab"
    assert record.name == "web"
    assert record.image == "nginx:latest"
    assert record.status == "Up 2 hours"
    assert record.state == LifecycleState.RUNNING
    assert record.ports == ("8080:80/tcp", "443/tcp")


def test_build_record_odd_values():
    record = build_record({"Id": "x", "Names": ["//weird"], "State": "hibernating", "Ports": None})
    assert record.name == "/weird"
    assert record.state == LifecycleState.UNKNOWN
    assert record.ports == ()


def test_list_containers_includes_stopped(client):
    client.api.containers.return_value = [RAW]
    records = DockerBackend(client).list_containers()
    client.api.containers.assert_called_once_with(all=True)
    assert [r.name for r in records] == ["web"]


def test_list_containers_propagates_errors(client):
    client.api.containers.side_effect = ConnectionError("daemon gone")
    with pytest.raises(ConnectionError):
        DockerBackend(client).list_containers()


def test_lifecycle_calls(client):
    backend = DockerBackend(client)
    container = client.containers.get.return_value
    backend.start("abc")
    backend.stop("abc", timeout=10)
    backend.restart("abc", timeout=10)
    backend.destroy("abc")
    container.start.assert_called_once()
    container.stop.assert_called_once_with(timeout=10)
    container.restart.assert_called_once_with(timeout=10)
    container.remove.assert_called_once_with(force=True)


def test_inspect_is_indented_json(client):
    client.api.inspect_container.return_value = {"Id": "abc", "State": {"Running": True}}
    text = DockerBackend(client).inspect("abc")
    assert json.loads(text)["State"]["Running"] is True
    assert '\n  "Id": "abc"' in text


def test_get_logs_decodes(client):
    client.containers.get.return_value.logs.return_value = b"line1\n\xffline2\n"
    text = DockerBackend(client).get_logs("abc", tail=100)
    client.containers.get.return_value.logs.assert_called_once_with(stdout=True, stderr=True, tail=100)
    assert text.startswith("line1\n")
    assert "line2" in text


def test_exec_in_container(client):
    client.api.exec_create.return_value = {"Id": "exec123"}
    client.api.exec_start.return_value = b"hello\n"
    exec_id, output = DockerBackend(client).exec_in_container("abc", "echo hello")
    assert (exec_id, output) == ("exec123", "hello\n")
    args = client.api.exec_create.call_args
    assert args.args == ("abc", ["/bin/sh", "-c", "echo hello"])


def test_exec_create_failure(client):
    client.api.exec_create.side_effect = RuntimeError("no such container")
    with pytest.raises(ExecError, match="failed to create exec: no such container"):
        DockerBackend(client).exec_in_container("abc", "ls")


def test_exec_attach_failure(client):
    client.api.exec_create.return_value = {"Id": "e1"}
    client.api.exec_start.side_effect = RuntimeError("hijack failed")
    with pytest.raises(ExecError, match="failed to attach"):
        DockerBackend(client).exec_in_container("abc", "ls")
