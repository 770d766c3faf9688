from localcm.config import ConfigManager, default_config_path
from localcm.model import RuntimeOptions


def test_missing_file_uses_defaults(tmp_path):
    manager = ConfigManager(tmp_path / "absent.yaml")
    manager.load_config()
    assert manager.get_runtime_options() == RuntimeOptions()
    assert not (tmp_path / "absent.yaml").exists()


def test_user_values_override_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "ui:\n  refresh_interval: 2\n"
        "docker:\n  logs_tail: 500\n"
        "logging:\n  level: debug\n"
    )
    manager = ConfigManager(path)
    manager.load_config()
    options = manager.get_runtime_options()
    assert options.refresh_interval == 2.0
    assert options.logs_tail == 500
    assert options.stop_timeout == 10
    assert manager.get_log_level() == "DEBUG"


def test_wrong_types_and_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("docker:\n  logs_tail: lots\n  colour: red\nui: 3\n")
    manager = ConfigManager(path)
    manager.load_config()
    assert manager.get_runtime_options() == RuntimeOptions()


def test_invalid_yaml_falls_back(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("ui: [unclosed\n")
    manager = ConfigManager(path)
    manager.load_config()
    assert manager.get_runtime_options() == RuntimeOptions()


def test_config_path_resolution(tmp_path):
    assert default_config_path({"LOCALCM_CONFIG": str(tmp_path / "x.yaml")}) == tmp_path / "x.yaml"
    assert default_config_path({"XDG_CONFIG_HOME": str(tmp_path)}) == tmp_path / "localcm" / "config.yaml"


def test_exec_shell_is_not_configurable(tmp_path, caplog):
    path = tmp_path / "config.yaml"
    path.write_text("docker:\n  shell: /bin/bash\n")
    manager = ConfigManager(path)
    with caplog.at_level("WARNING", logger="localcm.config"):
        manager.load_config()
    assert "Unknown config key 'shell' ignored" in caplog.text
    assert manager.get_runtime_options() == RuntimeOptions()
    assert not hasattr(manager.get_config().docker, "shell")
