"""Snapshots of the timers directory for the live dashboard."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from .codec import format_date
from .models import TimerRecord
from .reporting import format_optional_duration
from .store import TimerStore


@dataclass(slots=True)
class DashboardEntry:
    name: str
    status_symbol: str
    status: str
    is_running: bool
    duration_text: str
    duration_seconds: Optional[float]
    start_text: str
    stop_text: str
    tags: list[str]
    path: str

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


def make_dashboard_entry(store: TimerStore, name: str, record: TimerRecord) -> DashboardEntry:
    if record.is_running:
        symbol, status = "⏱", "Running"
    elif record.start_time is not None:
        symbol, status = "⏹", "Stopped"
    else:
        symbol, status = "○", "Idle"
    return DashboardEntry(
        name=name,
        status_symbol=symbol,
        status=status,
        is_running=record.is_running,
        duration_text=format_optional_duration(record.duration),
        duration_seconds=record.duration_seconds,
        start_text=format_date(record.start_time) if record.start_time else "—",
        stop_text=format_date(record.stop_time) if record.stop_time else "—",
        tags=list(record.tags),
        path=str(store.timer_path(name)),
    )


def make_dashboard_entries(store: TimerStore) -> list[DashboardEntry]:
    """Build one entry per timer; files that vanish mid-scan are skipped."""
    entries: list[DashboardEntry] = []
    for name in store.list_names():
        record = store.load(name)
        if record is None:
            continue
        entries.append(make_dashboard_entry(store, name, record))
    return entries
