"""Exceptions raised by timer store and command operations."""

from __future__ import annotations


class TimerError(Exception):
    """Base class for domain failures reported to the CLI and dashboard."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or name)


class TimerNotFoundError(TimerError, LookupError):
    """No timer file exists for the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Timer '{name}' not found")


class TimerAlreadyExistsError(TimerError):
    """A different timer already occupies the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Timer '{name}' already exists")


class InvalidTimerNameError(TimerError, ValueError):
    """The supplied timer name is empty after trimming."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Invalid timer name: {name!r}")


class TimerStateError(TimerError):
    """The timer is not in the state the operation requires."""


class InvalidDateError(ValueError):
    """A user supplied timestamp could not be parsed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Invalid date {value!r}. Use ISO 8601 format (e.g., 2025-11-04T10:30:00Z)"
        )
