"""Tests for console rendering helpers."""

from datetime import timedelta

from mdtimer.models import TimerRecord
from mdtimer.reporting import TimerPrinter, format_duration, format_optional_duration, status_label

from conftest import local


def test_format_duration_with_hours():
    assert format_duration(3661) == "1h 1m 1s"


def test_format_duration_with_minutes():
    assert format_duration(timedelta(seconds=125)) == "2m 5s"


def test_format_duration_with_seconds():
    assert format_duration(45.9) == "45s"
    assert format_duration(0) == "0s"


def test_format_duration_negative():
    assert format_duration(timedelta(hours=-1)) == "-1h 0m 0s"


def test_format_optional_duration():
    assert format_optional_duration(None) == "—"


def test_status_labels():
    assert "Running" in status_label(TimerRecord(start_time=local(2025, 1, 1, 9, 0, 0)))
    assert "Stopped" in status_label(
        TimerRecord(start_time=local(2025, 1, 1, 9, 0, 0), stop_time=local(2025, 1, 1, 10, 0, 0))
    )
    assert "Not started" in status_label(TimerRecord())


def test_print_timer(store, capsys):
    record = TimerRecord(
        start_time=local(2025, 11, 16, 9, 0, 0),
        stop_time=local(2025, 11, 16, 10, 0, 5),
        tags=["a", "b"],
    )
    TimerPrinter(store).print_timer("work", record)
    out = capsys.readouterr().out
    assert "Timer: work" in out
    assert "Start:    2025-11-16T09:00:00" in out
    assert "Stop:     2025-11-16T10:00:05" in out
    assert "Tags:     a, b" in out
    assert "Duration: 1h 0m 5s" in out


def test_print_listing_empty(store, capsys):
    TimerPrinter(store).print_listing()
    assert "No timers found" in capsys.readouterr().out


def test_print_listing(store, capsys):
    store.save("idle", TimerRecord())
    store.save("work", TimerRecord(start_time=local(2025, 11, 16, 9, 0, 0)))
    TimerPrinter(store).print_listing()
    out = capsys.readouterr().out
    lines = [line for line in out.splitlines() if line.startswith(("idle", "work"))]
    assert lines[0].startswith("idle ")
    assert "Not started" in lines[0] and "(—)" in lines[0]
    assert "Running" in lines[1]
