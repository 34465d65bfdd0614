"""Conversion between timer records and Markdown files with front matter.

A timer file looks like::

    ---
    start_time: 2025-11-16T10:30:00
    end_time: null
    tags:
      - work
    project: Client
    ---
    Free-form notes...

Decoding is deliberately forgiving: unknown front matter lines are kept
verbatim and unparseable timestamps become ``None`` instead of errors.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from .models import TimerRecord

DELIMITER = "---"
DATETIME_FMT = "%Y-%m-%dT%H:%M:%S"

_START_KEY = "start_time:"
_END_KEY = "end_time:"
_TAGS_KEY = "tags:"

# Tried in order; the last pattern has no offset and is read as local time.
_PARSE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    DATETIME_FMT,
)

_LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware local datetime.

    Accepts ``2025-11-16T10:30:00.123Z``, ``2025-11-16T10:30:00+02:00`` and
    the naive ``2025-11-16T10:30:00`` (interpreted in the local zone).
    Returns ``None`` when no format matches.
    """
    candidate = value.strip()
    for fmt in _PARSE_FORMATS:
        try:
            parsed = datetime.strptime(candidate, fmt)
        except ValueError:
            continue
        return parsed.astimezone()
    return None


def format_date(value: datetime) -> str:
    """Format a timestamp for storage: local time, second precision, no offset."""
    return value.astimezone().strftime(DATETIME_FMT)


def parse_markdown(content: str) -> TimerRecord:
    """Decode a timer file. Never raises; malformed input degrades to defaults."""
    record = TimerRecord()
    lines = _LINE_BREAK_PATTERN.split(content)

    # Line 0 is the opening delimiter and is not checked.
    index = 1
    while index < len(lines):
        raw_line = lines[index]
        stripped = raw_line.strip()

        if stripped == DELIMITER:
            break

        if stripped.startswith(_START_KEY):
            record.start_time = _parse_optional_date(stripped[len(_START_KEY):])
        elif stripped.startswith(_END_KEY):
            record.stop_time = _parse_optional_date(stripped[len(_END_KEY):])
        elif stripped.startswith(_TAGS_KEY):
            remainder = stripped[len(_TAGS_KEY):].strip()
            if remainder == "[]":
                record.tags = []
            elif remainder:
                record.tags = _split_inline_tags(remainder)
            else:
                tags, index = _read_tag_block(lines, index)
                record.tags = tags
        else:
            record.custom_properties.append(raw_line)

        index += 1

    return record


def generate_markdown(record: TimerRecord, notes: Optional[str] = None) -> str:
    """Encode a record, appending ``notes`` verbatim after the front matter."""
    lines = [DELIMITER]
    lines.append(f"start_time: {_format_optional_date(record.start_time)}")
    lines.append(f"end_time: {_format_optional_date(record.stop_time)}")

    if record.tags:
        lines.append("tags:")
        lines.extend(f"  - {tag}" for tag in record.tags)
    else:
        lines.append("tags: []")

    lines.extend(record.custom_properties)
    lines.append(DELIMITER)
    lines.append("")

    result = "\n".join(lines)
    if notes:
        result += notes
    if not result.endswith("\n"):
        result += "\n"
    return result


def extract_notes(content: str) -> Optional[str]:
    """Return everything after the closing front matter delimiter, if anything."""
    if not content.startswith(DELIMITER):
        return None

    marker = f"\n{DELIMITER}\n"
    position = content.find(marker)
    if position != -1:
        return content[position + len(marker):] or None

    marker = f"\n{DELIMITER}"
    position = content.rfind(marker)
    if position != -1:
        return content[position + len(marker):] or None

    return None


def _parse_optional_date(raw: str) -> Optional[datetime]:
    value = raw.strip()
    if not value or value.lower() == "null":
        return None
    return parse_date(value)


def _format_optional_date(value: Optional[datetime]) -> str:
    return format_date(value) if value is not None else "null"


def _split_inline_tags(remainder: str) -> list[str]:
    pieces = (piece.strip() for piece in remainder.split(","))
    return [piece for piece in pieces if piece]


def _read_tag_block(lines: list[str], index: int) -> tuple[list[str], int]:
    """Consume ``- item`` and blank lines following ``tags:``.

    Returns the tags and the index of the last consumed line so the caller's
    loop re-examines the first line that is not part of the block.
    """
    tags: list[str] = []
    while index + 1 < len(lines):
        candidate = lines[index + 1].strip()
        if candidate.startswith("- "):
            value = candidate[2:].strip()
            if value:
                tags.append(value)
        elif candidate:
            break
        index += 1
    return tags, index
