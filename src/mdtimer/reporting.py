"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional, Union

from .codec import format_date
from .models import TimerRecord
from .store import TimerStore

RULE = "━" * 27


class TimerPrinter:
    """Render human-readable timer details in the console."""

    def __init__(self, store: TimerStore) -> None:
        self.store = store

    def print_timer(self, name: str, record: TimerRecord) -> None:
        print()
        print(f"📊 Timer: {name}")
        print(RULE)
        if record.start_time is not None:
            print(f"Start:    {format_date(record.start_time)}")
        else:
            print("Start:    Not started")

        if record.stop_time is not None:
            print(f"Stop:     {format_date(record.stop_time)}")
        elif record.is_running:
            print("Stop:     Running ⏱️")
        else:
            print("Stop:     Not started")

        if record.tags:
            print(f"Tags:     {', '.join(record.tags)}")

        duration = record.duration
        if duration is not None:
            print(f"Duration: {format_duration(duration)}")
        print(RULE)
        print()

    def print_listing(self) -> None:
        names = self.store.list_names()
        if not names:
            print("No timers found. Create one with 'timer start <name>'")
            return

        print()
        print("📋 Available Timers:")
        print(RULE)
        for name in names:
            record = self.store.load(name)
            if record is None:
                continue
            print(f"{name:<20} {status_label(record)}  ({format_optional_duration(record.duration)})")
        print(RULE)
        print()


def status_label(record: TimerRecord) -> str:
    if record.is_running:
        return "⏱️  Running"
    if record.start_time is not None:
        return "⏹️  Stopped"
    return "○  Not started"


def format_optional_duration(duration: Optional[timedelta]) -> str:
    return format_duration(duration) if duration is not None else "—"


def format_duration(duration: Union[timedelta, float]) -> str:
    """Render a duration as ``1h 1m 1s``, ``2m 5s`` or ``45s``."""
    seconds_total = (
        duration.total_seconds() if isinstance(duration, timedelta) else duration
    )
    whole = int(seconds_total)
    # Stop times before the start time are allowed, so keep the sign.
    sign = "-" if whole < 0 else ""
    hours, remainder = divmod(abs(whole), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{sign}{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{sign}{minutes}m {seconds}s"
    return f"{sign}{seconds}s"
