"""
localcm - A keyboard-driven terminal dashboard for a local container daemon.

This package finds a reachable container runtime (Docker Desktop, Colima,
Rancher Desktop, Orbstack, Podman, Lima or whatever DOCKER_HOST points at),
then shows a live, filterable list of its containers with one-key lifecycle
actions, JSON inspection, log viewing, an in-app remote shell and a search
palette.

Features:
  - Live container list refreshed every second, never blocking input
  - Start / stop / restart / guarded destroy of the selected container
  - Inspect (pretty JSON) and Logs (tail) views with scrolling
  - Remote shell overlay backed by one exec per command
  - Search palette over containers and commands
  - Responsive table that adapts to any terminal width

Main Components:
  - connection.py: Runtime discovery (ordered socket candidates)
  - backend.py: Docker API wrapper and snapshot builder
  - state.py: Pure view state machine and StateManager
  - effects.py: Runs daemon/browser requests off the UI loop
  - ui.py / overlays.py: rich renderables for every view
  - textual_app.py: Textual host (keys, paste, mouse, timers, workers)

Usage:
  python -m localcm
  lcm

Dependencies:
  - docker>=7.0.0
  - textual, rich
  - PyYAML (optional config file)
  - Python 3.10+
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def get_log_path() -> str:
    """
    Get the log file path following XDG Base Directory spec.

    Returns XDG_DATA_HOME/localcm/logs/localcm.log with fallback to /tmp.
    Creates directory if it doesn't exist.
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if not xdg_data_home:
        xdg_data_home = Path.home() / '.local' / 'share'
    else:
        xdg_data_home = Path(xdg_data_home)

    log_dir = xdg_data_home / 'localcm' / 'logs'

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / 'localcm.log')
    except (PermissionError, OSError):
        return '/tmp/localcm.log'


def setup_logging(level: str = "INFO", file_path=None, max_size_mb: int = 10, backup_count: int = 5) -> str:
    """Route the root logger to a rotating file; the terminal belongs to the TUI."""
    path = file_path or get_log_path()
    handler = RotatingFileHandler(
        path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )
    return path
