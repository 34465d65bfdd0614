"""Tests for the typer command-line interface."""

import pytest
from typer.testing import CliRunner

from mdtimer.cli import app
from mdtimer.store import TimerStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, timers_dir):
    def _invoke(*args):
        return runner.invoke(app, ["--directory", str(timers_dir), *args])

    return _invoke


def reload(timers_dir, name):
    return TimerStore(directory=timers_dir).load(name)


def test_start_and_show(invoke, timers_dir):
    result = invoke("start", "work", "--tag", "client")
    assert result.exit_code == 0, result.output
    assert "Started timer 'work'" in result.output
    assert reload(timers_dir, "work").tags == ["client"]

    shown = invoke("show", "work")
    assert shown.exit_code == 0
    assert "Timer: work" in shown.output
    assert "Running" in shown.output


def test_start_twice_fails(invoke):
    invoke("start", "work")
    result = invoke("start", "work")
    assert result.exit_code == 1
    assert "already running" in result.output


def test_stop(invoke, timers_dir):
    invoke("start", "work")
    result = invoke("stop", "work")
    assert result.exit_code == 0, result.output
    assert "Stopped timer 'work' - Duration:" in result.output
    assert not reload(timers_dir, "work").is_running


def test_stop_missing(invoke):
    result = invoke("stop", "ghost")
    assert result.exit_code == 1
    assert "Timer 'ghost' not found!" in result.output


def test_stop_without_name_is_usage_error(invoke):
    result = invoke("stop")
    assert result.exit_code == 1
    assert "Usage" in result.output


def test_running_flag_targets_first_running_timer(invoke, timers_dir):
    invoke("start", "b")
    invoke("start", "a")
    result = invoke("--running", "stop")
    assert result.exit_code == 0, result.output
    assert "Stopped timer 'a'" in result.output
    assert reload(timers_dir, "b").is_running


def test_running_flag_without_running_timers(invoke):
    result = invoke("-r", "stop")
    assert result.exit_code == 1
    assert "No running timers found." in result.output


def test_split_generates_name(invoke, timers_dir):
    invoke("start", "work", "-t", "client")
    result = invoke("split", "work")
    assert result.exit_code == 0, result.output
    assert "into 'work-1'" in result.output
    assert reload(timers_dir, "work-1").tags == ["client"]
    assert not reload(timers_dir, "work").is_running


def test_split_running_with_new_name(invoke, timers_dir):
    invoke("start", "work")
    result = invoke("--running", "split", "review")
    assert result.exit_code == 0, result.output
    assert reload(timers_dir, "review").is_running


def test_split_too_many_arguments(invoke):
    result = invoke("split", "a", "b", "c")
    assert result.exit_code == 1


def test_tag_and_remove_tag(invoke, timers_dir):
    invoke("start", "work")
    assert "Added tag 'x'" in invoke("tag", "work", "x").output
    assert "already exists" in invoke("tag", "work", "x").output
    assert "Added tag 'y'" in invoke("-r", "tag", "y").output
    assert reload(timers_dir, "work").tags == ["x", "y"]
    assert "Removed tag 'x'" in invoke("remove-tag", "work", "x").output
    assert "not found on timer" in invoke("remove-tag", "work", "x").output


def test_set_start_and_stop(invoke, timers_dir):
    invoke("start", "work")
    result = invoke("set-start", "work", "2025-11-04T09:00:00")
    assert result.exit_code == 0, result.output
    assert "2025-11-04T09:00:00" in result.output
    result = invoke("set-stop", "work", "2025-11-04T17:00:00")
    assert result.exit_code == 0, result.output
    record = reload(timers_dir, "work")
    assert record.duration.total_seconds() == 8 * 3600


def test_set_start_invalid_date(invoke):
    invoke("start", "work")
    result = invoke("set-start", "work", "not-a-date")
    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_rename(invoke, timers_dir):
    invoke("start", "a")
    invoke("start", "b")
    collision = invoke("rename", "a", "b")
    assert collision.exit_code == 1
    assert "Timer 'b' already exists." in collision.output

    result = invoke("rename", "a", "c")
    assert result.exit_code == 0, result.output
    assert "Renamed timer 'a' to 'c'" in result.output
    assert TimerStore(directory=timers_dir).list_names() == ["b", "c"]


def test_rename_blank_name(invoke):
    invoke("start", "a")
    result = invoke("rename", "a", "  ")
    assert result.exit_code == 1
    assert "Invalid name provided." in result.output


def test_archive_and_list(invoke, timers_dir):
    invoke("start", "a")
    invoke("start", "b")
    result = invoke("archive", "a")
    assert result.exit_code == 0, result.output
    assert "Archived timer 'a'" in result.output
    listing = invoke("list")
    names = [line.split()[0] for line in listing.output.splitlines() if line.startswith(("a ", "b "))]
    assert names == ["b"]
    assert len(list((timers_dir / "archived").glob("a-*.md"))) == 1


def test_list_empty(invoke):
    result = invoke("list")
    assert result.exit_code == 0
    assert "No timers found" in result.output


def test_timer_path_selects_timer(invoke, timers_dir):
    invoke("start", "work")
    result = invoke("--timer-path", str(timers_dir / "work.md"), "stop")
    assert result.exit_code == 0, result.output
    assert "Stopped timer 'work'" in result.output


def test_relative_timer_path_resolves_against_cwd(invoke, timers_dir, monkeypatch):
    invoke("start", "work")
    monkeypatch.chdir(timers_dir)
    result = invoke("-p", "work.md", "tag", "focus")
    assert result.exit_code == 0, result.output
    assert reload(timers_dir, "work").tags == ["focus"]


def test_start_rejects_path_like_name(invoke, tmp_path):
    result = invoke("start", "../escaped")
    assert result.exit_code == 1
    assert "Invalid name provided." in result.output
    assert not (tmp_path / "escaped.md").exists()


def test_timer_path_outside_directory_is_rejected(invoke, tmp_path):
    outside = tmp_path / "outside.md"
    outside.write_text("---\n---\n")
    result = invoke("--timer-path", str(outside), "show")
    assert result.exit_code == 1
    assert "outside the timers directory" in result.output


def test_config_defaults_apply_to_cli(runner, isolated_home):
    config = isolated_home / ".timer" / "config.json"
    config.parent.mkdir()
    config.write_text(
        '{"timersDirectory": "~/mytimers", "custom_properties": "project: X",'
        ' "placeholder_notes": "notes here"}'
    )
    result = runner.invoke(app, ["start", "work"])
    assert result.exit_code == 0, result.output
    content = (isolated_home / "mytimers" / "work.md").read_text()
    assert "project: X\n---\nnotes here\n" in content


def test_button_command(runner, isolated_home, timers_dir):
    config = isolated_home / ".timer" / "config.json"
    config.parent.mkdir()
    config.write_text(
        '{"custom_buttons": [{"title": "Echo", "command": "echo {{word}}",'
        ' "placement": "global", "arguments": [{"name": "word", "label": "Word"}]}]}'
    )
    base = ["--directory", str(timers_dir)]
    missing = runner.invoke(app, [*base, "button", "Echo"])
    assert missing.exit_code == 1
    assert "Missing button arguments: word" in missing.output

    unknown = runner.invoke(app, [*base, "button", "Nope"])
    assert unknown.exit_code == 1


def test_directory_relative_to_cwd(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["-d", "rel", "start", "work"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "rel" / "work.md").is_file()
