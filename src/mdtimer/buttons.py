"""Run user-configured shell commands from dashboard buttons."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .config import ButtonPlacement, CustomButtonConfig
from .models import TimerRecord

logger = logging.getLogger(__name__)

PATH_PLACEHOLDER = "{{path}}"
DEFAULT_TIMEOUT_SECONDS = 30.0

_DANGEROUS_PATTERNS: tuple[str, ...] = (
    "rm -rf /",
    "mkfs",
    "dd if=",
    "> /dev/",
    ":(){ :|:& };:",
)


@dataclass(slots=True)
class ButtonResult:
    success: bool
    stdout: str
    stderr: str
    exit_code: int

    @property
    def output(self) -> str:
        if not self.stderr:
            return self.stdout
        if not self.stdout:
            return self.stderr
        return f"{self.stdout}\n\nErrors:\n{self.stderr}"


def substitute_placeholders(
    command: str,
    timer_path: Optional[Path] = None,
    arguments: Optional[Mapping[str, str]] = None,
) -> str:
    """Replace ``{{path}}`` and ``{{<argument>}}`` placeholders in ``command``.

    Argument values are shell-quoted, so argument placeholders are written
    without surrounding quotes.
    """
    result = command
    if timer_path is not None:
        result = result.replace(PATH_PLACEHOLDER, str(timer_path))
    for name, value in (arguments or {}).items():
        result = result.replace(f"{{{{{name}}}}}", shlex.quote(value))
    return result


def is_command_safe(command: str) -> bool:
    """Reject a handful of obviously destructive commands.

    This is a tripwire for typos in the config file, not a sandbox.
    """
    return not any(pattern in command for pattern in _DANGEROUS_PATTERNS)


def button_applies_to(button: CustomButtonConfig, record: Optional[TimerRecord]) -> bool:
    if button.placement is ButtonPlacement.GLOBAL:
        return record is None
    if record is None:
        return False
    if button.placement is ButtonPlacement.RUNNING:
        return record.is_running
    return not record.is_running


def run_button_command(
    command: str,
    timer_path: Optional[Path] = None,
    arguments: Optional[Mapping[str, str]] = None,
    *,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> ButtonResult:
    """Execute a button command through ``bash -c`` and capture its output.

    A command still running after ``timeout`` seconds is killed and reported
    as a failure with exit code -1.
    """
    substituted = substitute_placeholders(command, timer_path, arguments)
    if not is_command_safe(substituted):
        logger.warning("Refusing to run unsafe command: %s", substituted)
        return ButtonResult(
            success=False,
            stdout="",
            stderr="Command rejected by safety check.",
            exit_code=-1,
        )

    logger.debug("Running button command: %s", substituted)
    try:
        completed = subprocess.run(
            ["/usr/bin/env", "bash", "-c", substituted],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.exception("Failed to execute button command")
        return ButtonResult(
            success=False,
            stdout="",
            stderr=f"Failed to execute command: {exc}",
            exit_code=-1,
        )

    return ButtonResult(
        success=completed.returncode == 0,
        stdout=completed.stdout.strip(),
        stderr=completed.stderr.strip(),
        exit_code=completed.returncode,
    )
