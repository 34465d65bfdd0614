"""Directory-backed storage for timer Markdown files."""

from __future__ import annotations

import logging
import os
import re
import shutil
import stat
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from .codec import extract_notes, generate_markdown, parse_markdown
from .config import TimerConfig
from .errors import InvalidTimerNameError, TimerAlreadyExistsError, TimerNotFoundError
from .models import TimerRecord
from .paths import get_default_timers_dir

logger = logging.getLogger(__name__)

TIMER_SUFFIX = ".md"
ARCHIVE_DIRECTORY_NAME = "archived"

_TRAILING_NUMBER_PATTERN = re.compile(r"-[0-9]+$")
_DIGITS_PATTERN = re.compile(r"[0-9]+")
# Characters that would let a name leave the timers directory or break open().
_FORBIDDEN_NAME_CHARACTERS = ("/", "\\", "\0")


class TimerStore:
    """Loads, saves and moves timer files inside a single directory.

    Nothing is cached: every call goes back to the file system, so several
    processes (the CLI and a running dashboard) can share a directory.
    Each file write is a whole-file replace; operations that touch two
    files, such as a split, are not transactional.
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        config: Optional[TimerConfig] = None,
    ) -> None:
        self.config = config or TimerConfig()
        self._default_custom_properties = self.config.custom_property_lines()
        self._default_placeholder_notes = self.config.placeholder_notes

        resolved = (
            Path(directory)
            if directory is not None
            else self.config.resolved_timers_directory() or get_default_timers_dir()
        )
        self.timers_directory = Path(os.path.abspath(resolved))

        try:
            self.timers_directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.warning(
                "Could not create timers directory %s", self.timers_directory, exc_info=True
            )

    @classmethod
    def from_config_file(
        cls, directory: Optional[Path] = None, config_path: Optional[Path] = None
    ) -> "TimerStore":
        """Build a store from the user's config file (``~/.timer/config.json``)."""
        config = TimerConfig.load(config_path) or TimerConfig()
        return cls(directory=directory, config=config)

    @property
    def archive_directory(self) -> Path:
        return self.timers_directory / ARCHIVE_DIRECTORY_NAME

    def template_custom_properties(self) -> list[str]:
        return list(self._default_custom_properties)

    def template_placeholder_notes(self) -> Optional[str]:
        return self._default_placeholder_notes

    def timer_path(self, name: str) -> Path:
        return self.timers_directory / f"{name}{TIMER_SUFFIX}"

    def validate_name(self, name: str) -> None:
        """Raise ``InvalidTimerNameError`` unless ``name`` is a plain file name here."""
        if (
            not name.strip()
            or name.strip() in (".", "..")
            or any(char in name for char in _FORBIDDEN_NAME_CHARACTERS)
            or self.timer_path(name).parent != self.timers_directory
            or not self.contains_path(self.timer_path(name))
        ):
            raise InvalidTimerNameError(name)

    def exists(self, name: str) -> bool:
        return self.timer_path(name).is_file()

    def contains_path(self, path: Path) -> bool:
        """True when ``path`` resolves to a location inside the timers directory."""
        candidate = Path(path).expanduser().resolve()
        root = self.timers_directory.resolve()
        return candidate == root or root in candidate.parents

    def load(self, name: str) -> Optional[TimerRecord]:
        """Read a timer; ``None`` when the file is missing or unreadable."""
        path = self.timer_path(name)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.debug("No readable timer at %s", path)
            return None
        return parse_markdown(content)

    def save(
        self,
        name: str,
        record: TimerRecord,
        default_notes: Optional[str] = None,
    ) -> Path:
        """Write ``record``, keeping the notes already in the file.

        ``default_notes`` is only used when the file does not exist yet.
        """
        path = self.timer_path(name)
        notes = default_notes
        if path.exists():
            notes = None
            try:
                notes = extract_notes(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError):
                logger.warning("Could not read existing notes from %s", path, exc_info=True)

        _write_atomically(path, generate_markdown(record, notes))
        logger.debug("Saved timer %s to %s", name, path)
        return path

    def list_names(self) -> list[str]:
        """Timer names in the directory, sorted; the archive is not included."""
        try:
            entries = list(self.timers_directory.iterdir())
        except OSError:
            return []
        return sorted(
            entry.name[: -len(TIMER_SUFFIX)]
            for entry in entries
            if entry.name.endswith(TIMER_SUFFIX) and entry.is_file()
        )

    def first_running_name(self) -> Optional[str]:
        """Alphabetically first running timer (not the most recently started)."""
        for name in self.list_names():
            record = self.load(name)
            if record is not None and record.is_running:
                return name
        return None

    def next_split_name(self, current_name: str) -> str:
        """Next free ``<base>-<n>`` name, e.g. ``work`` -> ``work-1``, ``work-3`` -> ``work-4``."""
        base = base_name_for_split(current_name)
        max_suffix = 0
        for name in self.list_names():
            if name == base:
                continue
            suffix = numeric_suffix(name, base)
            if suffix is not None:
                max_suffix = max(max_suffix, suffix)
        return f"{base}-{max_suffix + 1}"

    def archive(self, name: str) -> Path:
        """Move a timer to ``archived/<name>-<uuid>.md`` and return the new path."""
        source = self.timer_path(name)
        if not source.is_file():
            raise TimerNotFoundError(name)

        self.archive_directory.mkdir(parents=True, exist_ok=True)
        destination = self.archive_directory / f"{name}-{uuid.uuid4()}{TIMER_SUFFIX}"
        shutil.move(str(source), str(destination))
        logger.info("Archived timer %s to %s", name, destination)
        return destination

    def rename(self, old_name: str, new_name: str) -> Path:
        trimmed = new_name.strip()
        self.validate_name(trimmed)

        source = self.timer_path(old_name)
        if not source.is_file():
            raise TimerNotFoundError(old_name)

        destination = self.timer_path(trimmed)
        if destination.exists():
            if destination.resolve() == source.resolve():
                return destination
            raise TimerAlreadyExistsError(trimmed)

        shutil.move(str(source), str(destination))
        logger.info("Renamed timer %s to %s", old_name, trimmed)
        return destination


def base_name_for_split(name: str) -> str:
    """Strip trailing ``-<digits>`` groups, never reducing the name to nothing."""
    base = name
    while True:
        match = _TRAILING_NUMBER_PATTERN.search(base)
        if match is None or match.start() == 0:
            break
        base = base[: match.start()]
    return base or name


def numeric_suffix(name: str, base: str) -> Optional[int]:
    prefix = f"{base}-"
    if not name.startswith(prefix):
        return None
    suffix = name[len(prefix):]
    if not _DIGITS_PATTERN.fullmatch(suffix):
        return None
    return int(suffix)


def _write_atomically(path: Path, content: str) -> None:
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        newline="",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with handle:
            handle.write(content)
        os.chmod(handle.name, _target_mode(path))
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


def _target_mode(path: Path) -> int:
    """Mode of the file being replaced, or the umask default for a new file."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
