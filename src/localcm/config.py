"""
Configuration management for localcm.

This module provides optional configuration file support in YAML format.
Every setting has a default, so the file is never required and is never
written by the application.

Features:
- YAML configuration file at ~/.config/localcm/config.yaml
  (or $XDG_CONFIG_HOME/localcm/config.yaml, or the path in $LOCALCM_CONFIG)
- Default values with user overrides
- Refresh / status timing
- Docker timeouts and logs tail size
- Log level and log location override

Architecture:
- ConfigManager: Main configuration interface
- Merges user config with defaults, key by key
- Provides typed access to settings
- Handles missing/invalid config gracefully (logs and keeps defaults)

The container filters (hide Kubernetes / hide exited) are deliberately not
configurable: both are enabled at every start.
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields
from pathlib import Path

from .model import RuntimeOptions

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LOCALCM_CONFIG"


@dataclass
class UIConfig:
    """UI-related configuration."""
    refresh_interval: float = 1.0  # seconds
    status_clear_delay: float = 3.0
    refresh_notice_delay: float = 2.0


@dataclass
class DockerConfig:
    """Docker-related configuration."""
    probe_timeout: float = 3.0
    request_timeout: float = 60.0
    stop_timeout: int = 10
    logs_tail: int = 100


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file_path: Optional[str] = None  # None for default
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class AppConfig:
    """Main application configuration."""
    ui: UIConfig = field(default_factory=UIConfig)
    docker: DockerConfig = field(default_factory=DockerConfig)
    logging: LogConfig = field(default_factory=LogConfig)


def default_config_path(environ=None) -> Path:
    environ = os.environ if environ is None else environ
    if environ.get(CONFIG_ENV_VAR):
        return Path(environ[CONFIG_ENV_VAR]).expanduser()
    base = environ.get("XDG_CONFIG_HOME")
    config_home = Path(base) if base else Path.home() / ".config"
    return config_home / "localcm" / "config.yaml"


class ConfigManager:
    """Configuration manager with YAML file support."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else default_config_path()
        self._config: AppConfig = AppConfig()

    def load_config(self) -> AppConfig:
        """Load configuration from YAML file, keeping defaults on any problem."""
        if not self.config_file.exists():
            logger.debug(f"No configuration at {self.config_file}, using defaults")
            self._config = AppConfig()
            return self._config
        try:
            with open(self.config_file, 'r') as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError("top level must be a mapping")
            self._config = self._merge_configs(AppConfig(), user_config)
            logger.debug(f"Loaded configuration from {self.config_file}")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Failed to load config: {e}, using defaults")
            self._config = AppConfig()
        return self._config

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def _merge_configs(self, default: AppConfig, user: Dict[str, Any]) -> AppConfig:
        """Merge user config with defaults."""
        for section in ('ui', 'docker', 'logging'):
            if section in user:
                if isinstance(user[section], dict):
                    self._merge_dataclass(getattr(default, section), user[section])
                else:
                    logger.warning(f"Ignoring config section '{section}': not a mapping")
        return default

    def _merge_dataclass(self, obj: Any, updates: Dict[str, Any]) -> None:
        """Merge updates into dataclass object, skipping unknown or mistyped keys."""
        known = {f.name: f for f in fields(obj)}
        for key, value in updates.items():
            if key not in known:
                logger.warning(f"Unknown config key '{key}' ignored")
                continue
            current = getattr(obj, key)
            if current is not None and not self._compatible(current, value):
                logger.warning(f"Config key '{key}' has wrong type {type(value).__name__}, ignored")
                continue
            setattr(obj, key, value)

    @staticmethod
    def _compatible(current: Any, value: Any) -> bool:
        if isinstance(current, bool) or isinstance(value, bool):
            return isinstance(current, bool) and isinstance(value, bool)
        if isinstance(current, float):
            return isinstance(value, (int, float))
        return isinstance(value, type(current))

    def get_runtime_options(self) -> RuntimeOptions:
        """Settings consumed by the state machine and effect runner."""
        ui = self._config.ui
        docker = self._config.docker
        return RuntimeOptions(
            refresh_interval=float(ui.refresh_interval),
            status_clear_delay=float(ui.status_clear_delay),
            refresh_notice_delay=float(ui.refresh_notice_delay),
            stop_timeout=docker.stop_timeout,
            logs_tail=docker.logs_tail,
        )

    def get_log_level(self) -> str:
        """Get configured log level."""
        return self._config.logging.level.upper()

    def get_custom_log_path(self) -> Optional[str]:
        """Get custom log file path if configured."""
        return self._config.logging.file_path

    def get_probe_timeout(self) -> float:
        return float(self._config.docker.probe_timeout)

    def get_request_timeout(self) -> float:
        return float(self._config.docker.request_timeout)


# Global config instance
config_manager = ConfigManager()
