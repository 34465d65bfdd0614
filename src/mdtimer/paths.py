"""Helpers for locating application directories."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "mdtimer"
APP_AUTHOR = "mdtimer"

DEFAULT_DIRECTORY_NAME = ".timer"
CONFIG_FILE_NAME = "config.json"


def get_default_timers_dir() -> Path:
    """Return the directory used when neither the CLI nor the config names one."""
    return Path.home() / DEFAULT_DIRECTORY_NAME


def get_config_path() -> Path:
    return Path.home() / DEFAULT_DIRECTORY_NAME / CONFIG_FILE_NAME


def get_log_path() -> Path:
    """Per-user log file the dashboard server appends to."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR)
    return Path(dirs.user_log_path) / "dashboard.log"


def resolve_directory_path(path: str | os.PathLike[str], relative_to: Path) -> Path:
    """Expand ``~`` and anchor relative paths at ``relative_to``."""
    expanded = Path(os.path.expanduser(os.fspath(path)))
    if not expanded.is_absolute():
        expanded = Path(relative_to) / expanded
    return Path(os.path.normpath(expanded))
