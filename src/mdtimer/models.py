"""Domain models for tracked timers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional


def local_now() -> datetime:
    """Current wall-clock time as an aware datetime in the local zone."""
    return datetime.now().astimezone()


@dataclass(slots=True)
class TimerRecord:
    """State of a single timer as persisted in its Markdown front matter.

    ``custom_properties`` holds any front matter line that is not one of the
    recognised keys, verbatim and in file order, so hand-written fields
    survive a rewrite.
    """

    start_time: Optional[datetime] = None
    stop_time: Optional[datetime] = None
    tags: list[str] = field(default_factory=list)
    custom_properties: list[str] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.start_time is not None and self.stop_time is None

    @property
    def is_started(self) -> bool:
        return self.start_time is not None

    @property
    def duration(self) -> Optional[timedelta]:
        """Elapsed time; running timers are measured against the current time."""
        if self.start_time is None:
            return None
        end = self.stop_time or local_now()
        return _aware(end) - _aware(self.start_time)

    @property
    def duration_seconds(self) -> Optional[float]:
        duration = self.duration
        return duration.total_seconds() if duration is not None else None

    @property
    def status(self) -> str:
        if self.is_running:
            return "Running"
        if self.start_time is not None:
            return "Stopped"
        return "Not started"


def _aware(value: datetime) -> datetime:
    # Naive values are treated as local time.
    return value if value.tzinfo is not None else value.astimezone()
