"""Configuration models and helpers for the timer tool."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .paths import get_config_path, resolve_directory_path

logger = logging.getLogger(__name__)


class ButtonPlacement(str, Enum):
    """Where a custom button is offered in the dashboard."""

    GLOBAL = "global"
    RUNNING = "running"
    STOPPED = "stopped"


class ButtonArgument(BaseModel):
    """A value collected from the user and substituted as ``{{name}}``."""

    name: str
    label: str


class CustomButtonConfig(BaseModel):
    """A user-defined shell command shown as a dashboard button."""

    title: str
    command: str
    arguments: list[ButtonArgument] = Field(default_factory=list)
    placement: ButtonPlacement = ButtonPlacement.RUNNING

    @field_validator("arguments", mode="before")
    @classmethod
    def _none_means_no_arguments(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("placement", mode="before")
    @classmethod
    def _default_placement(cls, value: object) -> object:
        return ButtonPlacement.RUNNING if value is None else value


class TimerConfig(BaseModel):
    """Settings read from ``~/.timer/config.json``.

    ``custom_properties`` may be given as a list of lines or as a single
    newline-delimited string; both are normalised to a list.
    """

    model_config = ConfigDict(populate_by_name=True)

    timers_directory: Optional[str] = Field(default=None, alias="timersDirectory")
    placeholder_notes: Optional[str] = None
    custom_properties: Optional[list[str]] = None
    custom_buttons: list[CustomButtonConfig] = Field(default_factory=list)

    @field_validator("placeholder_notes", mode="before")
    @classmethod
    def _normalize_placeholder(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        sanitized = str(value).replace("\r", "")
        return sanitized if sanitized.strip() else None

    @field_validator("custom_properties", mode="before")
    @classmethod
    def _normalize_custom_properties(
        cls, value: Union[None, str, list[str]]
    ) -> Optional[list[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            lines = value.replace("\r", "").split("\n")
        else:
            lines = [str(line).replace("\r", "") for line in value]
        if not any(line.strip() for line in lines):
            return None
        return lines

    @field_validator("custom_buttons", mode="before")
    @classmethod
    def _none_means_no_buttons(cls, value: object) -> object:
        return [] if value is None else value

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Optional["TimerConfig"]:
        """Read the config file; returns ``None`` if it is missing or invalid."""
        config_path = Path(path) if path is not None else get_config_path()
        if not config_path.is_file():
            return None
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
            return cls.model_validate(raw)
        except (OSError, ValueError, ValidationError):
            logger.warning("Ignoring unreadable config file %s", config_path, exc_info=True)
            return None

    def resolved_timers_directory(self) -> Optional[Path]:
        if self.timers_directory is None:
            return None
        raw_path = self.timers_directory.strip()
        if not raw_path:
            return None
        return resolve_directory_path(raw_path, relative_to=Path.home())

    def custom_property_lines(self) -> list[str]:
        return list(self.custom_properties or [])
