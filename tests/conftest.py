"""Shared fixtures for timer tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from mdtimer.config import TimerConfig
from mdtimer.store import TimerStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the home directory at a scratch folder so ~/.timer is never touched."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def timers_dir(tmp_path: Path) -> Path:
    return tmp_path / "timers"


@pytest.fixture
def store(timers_dir: Path) -> TimerStore:
    return TimerStore(directory=timers_dir, config=TimerConfig())


def local(*args: int) -> datetime:
    """Aware local datetime, matching what the codec produces."""
    return datetime(*args).astimezone()
