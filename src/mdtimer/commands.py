"""Timer operations shared by the CLI and the dashboard.

Every mutating operation follows the same pattern: load the record by
name, change it in memory, save it back. Failures are raised as the
exceptions in :mod:`mdtimer.errors`; callers decide how to present them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from .codec import parse_date
from .errors import (
    InvalidDateError,
    TimerAlreadyExistsError,
    TimerNotFoundError,
    TimerStateError,
)
from .models import TimerRecord, local_now
from .store import TimerStore

logger = logging.getLogger(__name__)

DateInput = Union[str, datetime]


@dataclass(slots=True)
class TimerChange:
    """Outcome of an operation on a single timer."""

    name: str
    record: TimerRecord
    changed: bool = True


@dataclass(slots=True)
class SplitResult:
    stopped: TimerChange
    started: TimerChange
    split_time: datetime


def start_timer(
    store: TimerStore,
    name: str,
    tags: Iterable[str] = (),
    *,
    now: Optional[datetime] = None,
) -> TimerChange:
    store.validate_name(name)
    existing = store.load(name)
    if existing is not None:
        if existing.is_running:
            raise TimerStateError(name, f"Timer '{name}' is already running")
        raise TimerAlreadyExistsError(name)

    record = TimerRecord(
        start_time=now or local_now(),
        custom_properties=store.template_custom_properties(),
    )
    for tag in tags:
        if tag not in record.tags:
            record.tags.append(tag)
    store.save(name, record, default_notes=store.template_placeholder_notes())
    logger.info("Started timer %s", name)
    return TimerChange(name=name, record=record)


def stop_timer(
    store: TimerStore, name: str, *, now: Optional[datetime] = None
) -> TimerChange:
    record = _load_running(store, name)
    record.stop_time = now or local_now()
    store.save(name, record)
    logger.info("Stopped timer %s", name)
    return TimerChange(name=name, record=record)


def split_timer(
    store: TimerStore,
    name: str,
    new_name: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> SplitResult:
    """Stop ``name`` and start a successor that inherits its tags.

    The two files are written one after the other; if the second write
    fails the original timer stays stopped.
    """
    record = _load_running(store, name)

    supplied = new_name.strip() if new_name else ""
    successor_name = supplied or store.next_split_name(name)
    store.validate_name(successor_name)
    if store.load(successor_name) is not None:
        raise TimerAlreadyExistsError(successor_name)

    split_time = now or local_now()
    record.stop_time = split_time
    store.save(name, record)

    successor = TimerRecord(
        start_time=split_time,
        tags=list(record.tags),
        custom_properties=(
            list(record.custom_properties)
            if record.custom_properties
            else store.template_custom_properties()
        ),
    )
    store.save(
        successor_name, successor, default_notes=store.template_placeholder_notes()
    )
    logger.info("Split timer %s into %s", name, successor_name)
    return SplitResult(
        stopped=TimerChange(name=name, record=record),
        started=TimerChange(name=successor_name, record=successor),
        split_time=split_time,
    )


def tag_timer(store: TimerStore, name: str, tag: str) -> TimerChange:
    record = _load_existing(store, name)
    if tag in record.tags:
        return TimerChange(name=name, record=record, changed=False)
    record.tags.append(tag)
    store.save(name, record)
    return TimerChange(name=name, record=record)


def remove_tag(store: TimerStore, name: str, tag: str) -> TimerChange:
    record = _load_existing(store, name)
    if tag not in record.tags:
        return TimerChange(name=name, record=record, changed=False)
    record.tags.remove(tag)
    store.save(name, record)
    return TimerChange(name=name, record=record)


def set_start(store: TimerStore, name: str, value: DateInput) -> TimerChange:
    record = _load_existing(store, name)
    record.start_time = _coerce_date(value)
    store.save(name, record)
    return TimerChange(name=name, record=record)


def set_stop(store: TimerStore, name: str, value: DateInput) -> TimerChange:
    # No check that the stop time follows the start time.
    record = _load_existing(store, name)
    record.stop_time = _coerce_date(value)
    store.save(name, record)
    return TimerChange(name=name, record=record)


def archive_timer(store: TimerStore, name: str) -> Path:
    return store.archive(name)


def rename_timer(store: TimerStore, name: str, new_name: str) -> Path:
    return store.rename(name, new_name)


def _load_existing(store: TimerStore, name: str) -> TimerRecord:
    record = store.load(name)
    if record is None:
        raise TimerNotFoundError(name)
    return record


def _load_running(store: TimerStore, name: str) -> TimerRecord:
    record = _load_existing(store, name)
    if not record.is_running:
        raise TimerStateError(name, f"Timer '{name}' is not running")
    return record


def _coerce_date(value: DateInput) -> datetime:
    if isinstance(value, datetime):
        return value.astimezone()
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidDateError(value)
    return parsed
